"""Resolution of named views and structural checks of their Michelson types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from tzmeta.core.micheline import (
    MichelineBytes,
    MichelineInt,
    MichelineNode,
    MichelinePrim,
    MichelineSeq,
    MichelineString,
    prim,
)
from tzmeta.models import MetadataDocument, MichelsonStorageView, View


def types_equal(a: MichelineNode, b: MichelineNode) -> bool:
    """Structural equality of two Michelson types, ignoring annotations.

    Primitive names and arities must match at every level.
    """
    if isinstance(a, MichelinePrim) and isinstance(b, MichelinePrim):
        return (
            a.prim == b.prim
            and len(a.args) == len(b.args)
            and all(types_equal(x, y) for x, y in zip(a.args, b.args, strict=True))
        )
    if isinstance(a, MichelineSeq) and isinstance(b, MichelineSeq):
        return len(a.items) == len(b.items) and all(
            types_equal(x, y) for x, y in zip(a.items, b.items, strict=True)
        )
    if isinstance(a, (MichelineInt, MichelineString, MichelineBytes)):
        return type(a) is type(b) and a.value == b.value
    return False


@dataclass(frozen=True)
class ViewSignature:
    parameter: MichelineNode | None
    return_type: MichelineNode


TOKEN_VIEW_SIGNATURES: dict[str, ViewSignature] = {
    "get_balance": ViewSignature(
        parameter=prim("pair", prim("address", annots=["%owner"]), prim("nat", annots=["%token_id"])),
        return_type=prim("nat"),
    ),
    "total_supply": ViewSignature(parameter=prim("nat"), return_type=prim("nat")),
    "all_tokens": ViewSignature(parameter=None, return_type=prim("list", prim("nat"))),
    "is_operator": ViewSignature(
        parameter=prim(
            "pair",
            prim("address", annots=["%owner"]),
            prim("pair", prim("address", annots=["%operator"]), prim("nat", annots=["%token_id"])),
        ),
        return_type=prim("bool"),
    ),
    "token_metadata": ViewSignature(
        parameter=prim("nat"),
        return_type=prim(
            "pair",
            prim("nat", annots=["%token_id"]),
            prim("map", prim("string"), prim("bytes"), annots=["%token_info"]),
        ),
    ),
}


@dataclass(frozen=True)
class TypeStatus:
    kind: Literal["ok", "wrong", "unchecked_parameter", "missing_parameter"]
    found: MichelineNode | None = None

    @property
    def acceptable(self) -> bool:
        if self.kind == "unchecked_parameter":
            return self.found is None
        return self.kind == "ok"


@dataclass(frozen=True)
class Missing:
    pass


@dataclass(frozen=True)
class NoMichelsonImplementation:
    view: View


@dataclass(frozen=True)
class Invalid:
    view: View
    parameter_status: TypeStatus
    return_status: TypeStatus


@dataclass(frozen=True)
class Valid:
    implementation_index: int
    view: View

    @property
    def implementation(self) -> MichelsonStorageView:
        impl = self.view.implementations[self.implementation_index]
        if not isinstance(impl, MichelsonStorageView):
            raise TypeError(
                f"Implementation {self.implementation_index} of view {self.view.name!r} is not a Michelson storage view"
            )
        return impl


ViewValidationResult = Union[Missing, NoMichelsonImplementation, Invalid, Valid]


def _parameter_status(expected: MichelineNode | None, found: MichelineNode | None) -> TypeStatus:
    if expected is None:
        return TypeStatus("unchecked_parameter", found)
    if found is None:
        return TypeStatus("missing_parameter")
    if types_equal(expected, found):
        return TypeStatus("ok", found)
    return TypeStatus("wrong", found)


def _return_status(expected: MichelineNode, found: MichelineNode) -> TypeStatus:
    return TypeStatus("ok", found) if types_equal(expected, found) else TypeStatus("wrong", found)


def resolve_view(doc: MetadataDocument, name: str, signature: ViewSignature | None = None) -> ViewValidationResult:
    """Find the view called ``name`` and check it against its expected signature.

    The signature defaults to the canonical token-standard one for ``name``.
    """
    if signature is None:
        signature = TOKEN_VIEW_SIGNATURES[name]
    view = doc.find_view(name)
    if view is None:
        return Missing()
    candidates = view.michelson_implementations()
    if not candidates:
        return NoMichelsonImplementation(view)

    statuses = [
        (
            index,
            _parameter_status(signature.parameter, impl.parameter),
            _return_status(signature.return_type, impl.return_type),
        )
        for index, impl in candidates
    ]
    for index, parameter_status, return_status in statuses:
        if parameter_status.acceptable and return_status.acceptable:
            return Valid(index, view)
    _, parameter_status, return_status = statuses[0]
    return Invalid(view, parameter_status, return_status)
