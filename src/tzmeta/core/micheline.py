"""Micheline tree values: the generic format of Michelson code and data.

Nodes are frozen pydantic models forming a closed union discriminated by
``kind``.  ``from_json``/``to_json`` convert from and to the node RPC JSON
representation, ``render`` produces the concrete (human readable) syntax.
"""

import json
import re
from collections.abc import Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from tzmeta.core.errors import MetadataDecodeError, PathStep

_INT_RE = re.compile(r"^-?[0-9]+$")
_HEX_RE = re.compile(r"^([0-9a-fA-F]{2})*$")


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class MichelineInt(_Node):
    kind: Literal["int"] = "int"
    value: int


class MichelineString(_Node):
    kind: Literal["string"] = "string"
    value: str


class MichelineBytes(_Node):
    kind: Literal["bytes"] = "bytes"
    value: bytes


class MichelinePrim(_Node):
    kind: Literal["prim"] = "prim"
    prim: str
    args: tuple["MichelineNode", ...] = ()
    annots: tuple[str, ...] = ()


class MichelineSeq(_Node):
    kind: Literal["seq"] = "seq"
    items: tuple["MichelineNode", ...] = ()


MichelineNode = Annotated[
    Union[MichelineInt, MichelineString, MichelineBytes, MichelinePrim, MichelineSeq],
    Field(discriminator="kind"),
]

MichelinePrim.model_rebuild()  # necessary for recursive types
MichelineSeq.model_rebuild()

NODE_TYPES = (MichelineInt, MichelineString, MichelineBytes, MichelinePrim, MichelineSeq)

UNIT = MichelinePrim(prim="Unit")


def prim(name: str, *args: MichelineNode, annots: Sequence[str] = ()) -> MichelinePrim:
    return MichelinePrim(prim=name, args=tuple(args), annots=tuple(annots))


def seq(*items: MichelineNode) -> MichelineSeq:
    return MichelineSeq(items=tuple(items))


def from_json(value: Any, path: Sequence[PathStep] = ()) -> MichelineNode:
    """Build a node from its JSON representation.

    Raises ``MetadataDecodeError`` pointing at the innermost malformed element.
    """
    here = tuple(path)
    if isinstance(value, NODE_TYPES):
        return value
    if isinstance(value, list):
        return MichelineSeq(items=tuple(from_json(item, (*here, i)) for i, item in enumerate(value)))
    if not isinstance(value, dict):
        raise MetadataDecodeError(here, "a Micheline node (object or array)", value)

    if "prim" in value:
        unexpected = set(value) - {"prim", "args", "annots"}
        if unexpected:
            raise MetadataDecodeError((*here, sorted(unexpected)[0]), "no other field next to 'prim'", value)
        name = value["prim"]
        if not isinstance(name, str):
            raise MetadataDecodeError((*here, "prim"), "a primitive name (string)", name)
        args = value.get("args", [])
        if not isinstance(args, list):
            raise MetadataDecodeError((*here, "args"), "an array of Micheline nodes", args)
        annots = value.get("annots", [])
        if not isinstance(annots, list) or not all(isinstance(a, str) for a in annots):
            raise MetadataDecodeError((*here, "annots"), "an array of annotation strings", annots)
        return MichelinePrim(
            prim=name,
            args=tuple(from_json(arg, (*here, "args", i)) for i, arg in enumerate(args)),
            annots=tuple(annots),
        )

    if len(value) != 1:
        raise MetadataDecodeError(here, "an object with one of 'int', 'string', 'bytes' or 'prim'", value)
    key, payload = next(iter(value.items()))
    if key == "int":
        if not isinstance(payload, str) or not _INT_RE.match(payload):
            raise MetadataDecodeError((*here, "int"), "a decimal integer string", payload)
        return MichelineInt(value=int(payload))
    if key == "string":
        if not isinstance(payload, str):
            raise MetadataDecodeError((*here, "string"), "a string", payload)
        return MichelineString(value=payload)
    if key == "bytes":
        if not isinstance(payload, str) or not _HEX_RE.match(payload):
            raise MetadataDecodeError((*here, "bytes"), "a hexadecimal string", payload)
        return MichelineBytes(value=bytes.fromhex(payload))
    raise MetadataDecodeError((*here, key), "one of 'int', 'string', 'bytes' or 'prim'", value)


def to_json(node: MichelineNode) -> Any:
    if isinstance(node, MichelineInt):
        return {"int": str(node.value)}
    if isinstance(node, MichelineString):
        return {"string": node.value}
    if isinstance(node, MichelineBytes):
        return {"bytes": node.value.hex()}
    if isinstance(node, MichelineSeq):
        return [to_json(item) for item in node.items]
    out: dict[str, Any] = {"prim": node.prim}
    if node.args:
        out["args"] = [to_json(arg) for arg in node.args]
    if node.annots:
        out["annots"] = list(node.annots)
    return out


def render(node: MichelineNode, nested: bool = False) -> str:
    """Render ``node`` in Michelson concrete syntax on a single line."""
    if isinstance(node, MichelineInt):
        return str(node.value)
    if isinstance(node, MichelineString):
        return json.dumps(node.value, ensure_ascii=False)
    if isinstance(node, MichelineBytes):
        return "0x" + node.value.hex()
    if isinstance(node, MichelineSeq):
        if not node.items:
            return "{}"
        return "{ " + " ; ".join(render(item) for item in node.items) + " }"
    text = " ".join([node.prim, *node.annots, *(render(arg, nested=True) for arg in node.args)])
    if nested and (node.args or node.annots):
        return f"({text})"
    return text


def strip_annotations(node: MichelineNode) -> MichelineNode:
    if isinstance(node, MichelinePrim):
        return MichelinePrim(prim=node.prim, args=tuple(strip_annotations(a) for a in node.args))
    if isinstance(node, MichelineSeq):
        return MichelineSeq(items=tuple(strip_annotations(i) for i in node.items))
    return node


def iter_prims(node: MichelineNode) -> list[MichelinePrim]:
    """Return every primitive application of the tree in depth-first order."""
    found: list[MichelinePrim] = []

    def _walk(n: MichelineNode) -> None:
        if isinstance(n, MichelinePrim):
            found.append(n)
            for arg in n.args:
                _walk(arg)
        elif isinstance(n, MichelineSeq):
            for item in n.items:
                _walk(item)

    _walk(node)
    return found
