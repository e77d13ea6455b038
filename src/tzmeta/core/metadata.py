import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from tzmeta.core.errors import MetadataDecodeError, PathStep
from tzmeta.models import Author, MetadataDocument, PermissionsDescriptor

logger = logging.getLogger(__name__)

_TZIP_12_PREFIXES = ("TZIP-012", "TZIP-12")
_AUTHOR_RE = re.compile(r"^\s*([^<>]+?)\s*<([^<>\s]+)>\s*$")


class InterfaceClaim(BaseModel):
    """How a document claims the token standard in its ``interfaces`` list."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["version", "just_interface", "invalid"]
    text: str
    version: str | None = None


def _document_path(loc: tuple[Any, ...], raw: Any) -> list[PathStep]:
    """Follow a pydantic error location through the raw input.

    Steps naming a union member rather than a key of the input are dropped;
    the last step is kept when it names a missing key.
    """
    path: list[PathStep] = []
    current = raw
    for i, step in enumerate(loc):
        if isinstance(step, int) and isinstance(current, list) and 0 <= step < len(current):
            path.append(step)
            current = current[step]
        elif isinstance(step, str) and isinstance(current, dict) and step in current:
            path.append(step)
            current = current[step]
        elif isinstance(step, str) and isinstance(current, dict) and i == len(loc) - 1:
            path.append(step)
    return path


def _from_validation_error(err: ValidationError, raw: Any) -> MetadataDecodeError:
    first = err.errors(include_url=False)[0]
    path = _document_path(first["loc"], raw)
    ctx = first.get("ctx") or {}
    if first["type"] == "micheline":
        return MetadataDecodeError([*path, *ctx.get("inner_path", [])], ctx["expected"], ctx.get("actual"))
    return MetadataDecodeError(path, first["msg"], first.get("input", raw))


def _load_json(raw: str | bytes | Mapping[str, Any]) -> Any:
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MetadataDecodeError((), "a JSON document", str(e)) from e


def parse_metadata(raw: str | bytes | Mapping[str, Any]) -> MetadataDocument:
    """Parse a contract-metadata JSON document.

    Raises ``MetadataDecodeError`` with the path of the first offending value.
    """
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise MetadataDecodeError((), "a JSON object", data)
    try:
        doc = MetadataDocument.model_validate(data)
    except ValidationError as e:
        raise _from_validation_error(e, data) from e
    logger.debug("Parsed metadata with %d view(s) and %d unknown key(s)", len(doc.views), len(doc.unknown))
    return doc


def parse_permissions_descriptor(value: Any) -> PermissionsDescriptor:
    try:
        return PermissionsDescriptor.model_validate(value)
    except ValidationError as e:
        raise _from_validation_error(e, value).prefixed("permissions") from e


def interface_claim(doc: MetadataDocument) -> InterfaceClaim | None:
    """Find the first interface tag claiming the token standard."""
    for text in doc.interfaces:
        for prefix in _TZIP_12_PREFIXES:
            if not text.startswith(prefix):
                continue
            rest = text[len(prefix) :]
            if rest == "":
                return InterfaceClaim(kind="just_interface", text=text)
            if rest[0] in "- " and rest[1:].strip():
                return InterfaceClaim(kind="version", text=text, version=rest[1:].strip())
            if rest[0].isdigit():
                # "TZIP-0120" is another standard
                break
            return InterfaceClaim(kind="invalid", text=text)
    return None


def parse_author(text: str) -> Author:
    """Parse an author of the form ``Print Name <contact-url-or-email>``."""
    m = _AUTHOR_RE.match(text)
    if m is None:
        raise ValueError(f"Author {text!r} should look like 'Print Name <contact-url-or-email>'")
    name, contact = m.group(1), m.group(2)
    if contact.startswith("http"):
        return Author(name=name, url=contact)
    if "@" in contact:
        return Author(name=name, email=contact)
    raise ValueError(f"Author contact {contact!r} is neither a URL nor an e-mail address")
