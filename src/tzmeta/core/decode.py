"""Decoders from Micheline view results to plain Python values."""

from tzmeta.core.errors import TreeDecodeError
from tzmeta.core.micheline import (
    MichelineBytes,
    MichelineInt,
    MichelineNode,
    MichelinePrim,
    MichelineSeq,
    MichelineString,
    render,
)


def _wrong_structure(what: str, node: MichelineNode) -> TreeDecodeError:
    return TreeDecodeError(f"{what} has wrong structure", render(node))


def bytes_to_text(value: bytes) -> str:
    """UTF-8 text when the bytes decode, lowercase hexadecimal otherwise."""
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.hex()


def decode_metadata_map(node: MichelineNode) -> list[tuple[str, str]]:
    """Decode a ``Pair <token-id> { Elt "key" 0xbytes ; ... }`` token-metadata result.

    Entries keep the order of the result sequence.
    """
    if not (isinstance(node, MichelinePrim) and node.prim == "Pair" and len(node.args) == 2):
        raise _wrong_structure("Metadata result", node)
    entries = node.args[1]
    if not isinstance(entries, MichelineSeq):
        raise _wrong_structure("Metadata result", node)
    pairs: list[tuple[str, str]] = []
    for entry in entries.items:
        if not (
            isinstance(entry, MichelinePrim)
            and entry.prim == "Elt"
            and len(entry.args) == 2
            and isinstance(entry.args[0], MichelineString)
            and isinstance(entry.args[1], MichelineBytes)
        ):
            raise _wrong_structure("Metadata result", entry)
        pairs.append((entry.args[0].value, bytes_to_text(entry.args[1].value)))
    return pairs


def decode_int_list(node: MichelineNode) -> list[int]:
    if not isinstance(node, MichelineSeq):
        raise TreeDecodeError("Wrong Micheline structure for result", render(node))
    values: list[int] = []
    for item in node.items:
        if not isinstance(item, MichelineInt):
            raise TreeDecodeError("Wrong Micheline structure for result", render(node))
        values.append(item.value)
    return values


def decode_int(node: MichelineNode) -> int:
    if not isinstance(node, MichelineInt):
        raise TreeDecodeError("Wrong Micheline structure for result", render(node))
    return node.value


def _group_thousands(digits: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return " ".join(groups)


def _shift_point(digits: str, decimals: int) -> tuple[str, str]:
    digits = digits.rjust(decimals + 1, "0")
    return digits[:-decimals], digits[-decimals:]


def display_amount(raw: int, decimals: int | None = None) -> str:
    """Human-readable amount for presentation only.

    ``raw / 10**decimals`` is computed with float division, printed with at
    most ``decimals`` fractional digits, trailing zeros stripped and the
    integer part grouped by spaces.  Amounts or scales out of float range
    are shifted digit-wise instead.  Callers keep ``raw`` for anything else.
    """
    sign = "-" if raw < 0 else ""
    if decimals is None or decimals <= 0:
        return sign + _group_thousands(str(abs(raw)))
    try:
        text = f"{abs(raw) / (10.0**decimals):.{decimals}f}"
        integer, _, fraction = text.partition(".")
    except OverflowError:
        integer, fraction = _shift_point(str(abs(raw)), decimals)
    fraction = fraction.rstrip("0")
    if not fraction and integer.strip("0") == "":
        sign = ""
    out = sign + _group_thousands(integer)
    return f"{out}.{fraction}" if fraction else out
