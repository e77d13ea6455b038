from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from tzmeta.core.errors import MetadataDecodeError
from tzmeta.core.micheline import MichelineNode, from_json

MICHELSON_STORAGE_VIEW = "michelsonStorageView"
REST_API_QUERY = "restApiQuery"


def _as_micheline(value: Any) -> Any:
    try:
        return from_json(value)
    except MetadataDecodeError as e:
        raise PydanticCustomError(
            "micheline",
            "{expected}",
            {"expected": e.expected, "inner_path": list(e.path), "actual": e.actual},
        ) from None


Micheline = Annotated[MichelineNode, BeforeValidator(_as_micheline)]


class _Strict(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class License(_Strict):
    name: str
    details: str | None = None


class Source(_Strict):
    tools: tuple[str, ...] = ()
    location: str | None = None


class ViewAnnotation(_Strict):
    name: str
    description: str


class MichelsonStorageView(_Strict):
    kind: Literal["michelsonStorageView"] = MICHELSON_STORAGE_VIEW
    parameter: Micheline | None = None
    return_type: Micheline = Field(alias="returnType")
    code: Micheline
    annotations: tuple[ViewAnnotation, ...] = ()
    version: str | None = None


class RestApiQuery(_Strict):
    kind: Literal["restApiQuery"] = REST_API_QUERY
    specification_uri: str = Field(alias="specificationUri")
    base_uri: str | None = Field(default=None, alias="baseUri")
    path: str
    method: Literal["GET", "POST", "PUT"] = "GET"


Implementation = Annotated[Union[MichelsonStorageView, RestApiQuery], Field(discriminator="kind")]


def _unwrap_implementation(item: Any) -> Any:
    # {"michelsonStorageView": {...}} -> {"kind": "michelsonStorageView", ...}
    if isinstance(item, dict) and len(item) == 1:
        key, body = next(iter(item.items()))
        if key in (MICHELSON_STORAGE_VIEW, REST_API_QUERY) and isinstance(body, dict):
            return {"kind": key, **body}
    return item


class View(_Strict):
    name: str
    description: str | None = None
    is_pure: bool = Field(default=False, alias="pure")
    implementations: tuple[Implementation, ...] = ()

    @field_validator("implementations", mode="before")
    @classmethod
    def unwrap_implementations(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_unwrap_implementation(item) for item in v]
        return v

    def michelson_implementations(self) -> list[tuple[int, MichelsonStorageView]]:
        """Michelson-storage implementations with their index in ``implementations``."""
        return [(i, impl) for i, impl in enumerate(self.implementations) if isinstance(impl, MichelsonStorageView)]


class StaticErrorTranslation(_Strict):
    error: Micheline
    expansion: Micheline
    languages: tuple[str, ...] | None = None


class DynamicErrorTranslation(_Strict):
    view_name: str = Field(alias="view")
    languages: tuple[str, ...] | None = None


ErrorTranslation = Union[StaticErrorTranslation, DynamicErrorTranslation]


class MetadataDocument(BaseModel):
    """A parsed contract-metadata document.

    Top-level keys that are not part of the standard are kept, in document
    order, and exposed through ``unknown``.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: str | None = None
    description: str | None = None
    version: str | None = None
    license: License | None = None
    authors: tuple[str, ...] = ()
    homepage: str | None = None
    source: Source | None = None
    interfaces: tuple[str, ...] = ()
    errors: tuple[ErrorTranslation, ...] = ()
    views: tuple[View, ...] = ()

    @property
    def unknown(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def find_view(self, name: str) -> View | None:
        """Get the first view with this name."""
        for v in self.views:
            if v.name == name:
                return v
        return None


class CustomPermissionPolicy(_Strict):
    tag: str
    config_api: str | None = Field(default=None, alias="config-api")


class PermissionsDescriptor(_Strict):
    operator: Literal["no-transfer", "owner-transfer", "owner-or-operator-transfer"]
    receiver: Literal["owner-no-hook", "optional-owner-hook", "required-owner-hook"]
    sender: Literal["owner-no-hook", "optional-owner-hook", "required-owner-hook"]
    custom: CustomPermissionPolicy | None = None


class Author(_Strict):
    name: str
    url: str | None = None
    email: str | None = None
