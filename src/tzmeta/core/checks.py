"""Lint checks on a parsed metadata document.

Errors make a document unusable for off-chain view execution, warnings flag
things a metadata author probably did not intend.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from tzmeta.core.metadata import parse_author
from tzmeta.core.micheline import MichelineNode, MichelinePrim, MichelineSeq, iter_prims
from tzmeta.models import MetadataDocument, MichelsonStorageView

FORBIDDEN_MICHELSON_INSTRUCTIONS = (
    "AMOUNT",
    "CREATE_CONTRACT",
    "SENDER",
    "SET_DELEGATE",
    "SOURCE",
    "TRANSFER_TOKENS",
)

_PROTOCOL_HASH_RE = re.compile(r"^P[1-9A-HJ-NP-Za-km-z]{50}$")
_CONFUSING_WHITESPACE_RE = re.compile(r"^\s|\s$|[^\S ]|  ")


class IssueCode(str, Enum):
    # Errors
    FORBIDDEN_MICHELSON_INSTRUCTION = "FORBIDDEN_MICHELSON_INSTRUCTION"
    MICHELSON_VERSION_NOT_A_PROTOCOL_HASH = "MICHELSON_VERSION_NOT_A_PROTOCOL_HASH"

    # Warnings
    WRONG_AUTHOR_FORMAT = "WRONG_AUTHOR_FORMAT"
    UNEXPECTED_WHITESPACE = "UNEXPECTED_WHITESPACE"
    SELF_UNADDRESSED = "SELF_UNADDRESSED"


@dataclass(frozen=True)
class Issue:
    code: IssueCode
    message: str
    view: str | None = None
    field: str | None = None
    value: str | None = None


@dataclass
class DocumentReport:
    errors: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _self_followers(code: MichelineNode) -> list[str | None]:
    """For each ``SELF`` in a sequence, the instruction that follows it (if any)."""
    followers: list[str | None] = []

    def _walk(node: MichelineNode) -> None:
        if isinstance(node, MichelineSeq):
            for i, item in enumerate(node.items):
                if isinstance(item, MichelinePrim) and item.prim == "SELF":
                    nxt = node.items[i + 1] if i + 1 < len(node.items) else None
                    followers.append(nxt.prim if isinstance(nxt, MichelinePrim) else None)
                _walk(item)
        elif isinstance(node, MichelinePrim):
            for arg in node.args:
                _walk(arg)

    _walk(code)
    return followers


def _check_michelson_view(view_name: str, impl: MichelsonStorageView, report: DocumentReport) -> None:
    seen: set[str] = set()
    for p in iter_prims(impl.code):
        if p.prim in FORBIDDEN_MICHELSON_INSTRUCTIONS and p.prim not in seen:
            seen.add(p.prim)
            report.errors.append(
                Issue(
                    IssueCode.FORBIDDEN_MICHELSON_INSTRUCTION,
                    f"The off-chain-view {view_name!r} uses a forbidden Michelson instruction: {p.prim}.",
                    view=view_name,
                    value=p.prim,
                )
            )
    if impl.version is not None and not _PROTOCOL_HASH_RE.match(impl.version):
        report.errors.append(
            Issue(
                IssueCode.MICHELSON_VERSION_NOT_A_PROTOCOL_HASH,
                f"The off-chain-view {view_name!r} references a wrong version of Michelson ({impl.version!r}), "
                "it should be a valid protocol hash.",
                view=view_name,
                value=impl.version,
            )
        )
    for follower in _self_followers(impl.code):
        if follower == "ADDRESS":
            continue
        after = "not followed by any instruction" if follower is None else f"followed by {follower}"
        report.warnings.append(
            Issue(
                IssueCode.SELF_UNADDRESSED,
                f"The off-chain-view {view_name!r} uses SELF {after}; only SELF; ADDRESS is recommended.",
                view=view_name,
                value=follower,
            )
        )


def _check_whitespace(field_name: str, value: str | None, report: DocumentReport) -> None:
    if value is not None and _CONFUSING_WHITESPACE_RE.search(value):
        report.warnings.append(
            Issue(
                IssueCode.UNEXPECTED_WHITESPACE,
                f"The field {field_name!r} (={value!r}) uses confusing white-space characters.",
                field=field_name,
                value=value,
            )
        )


def check_document(doc: MetadataDocument) -> DocumentReport:
    report = DocumentReport()
    for view in doc.views:
        for _, impl in view.michelson_implementations():
            _check_michelson_view(view.name, impl, report)

    for author in doc.authors:
        try:
            parse_author(author)
        except ValueError:
            report.warnings.append(
                Issue(
                    IssueCode.WRONG_AUTHOR_FORMAT,
                    f"The author {author!r} has a wrong format, it should look like "
                    "'Print Name <contact-url-or-email>'.",
                    field="authors",
                    value=author,
                )
            )

    _check_whitespace("name", doc.name, report)
    _check_whitespace("version", doc.version, report)
    _check_whitespace("homepage", doc.homepage, report)
    if doc.license is not None:
        _check_whitespace("license.name", doc.license.name, report)
    for i, interface in enumerate(doc.interfaces):
        _check_whitespace(f"interfaces[{i}]", interface, report)
    for i, view in enumerate(doc.views):
        _check_whitespace(f"views[{i}].name", view.name, report)
    return report
