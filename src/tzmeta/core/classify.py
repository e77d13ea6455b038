from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from tzmeta.core.errors import MetadataDecodeError
from tzmeta.core.metadata import InterfaceClaim, interface_claim, parse_permissions_descriptor
from tzmeta.core.validation import Valid, ViewValidationResult, resolve_view
from tzmeta.models import MetadataDocument, PermissionsDescriptor

TOKEN_STANDARD_TRIGGER = "all_tokens"
MANDATORY_TOKEN_VIEWS = ("total_supply", "all_tokens", "is_operator", "token_metadata")


@dataclass(frozen=True)
class BaseOnly:
    document: MetadataDocument


@dataclass(frozen=True)
class TokenStandard:
    document: MetadataDocument
    interface_claim: InterfaceClaim | None
    get_balance: ViewValidationResult
    total_supply: ViewValidationResult
    all_tokens: ViewValidationResult
    is_operator: ViewValidationResult
    token_metadata: ViewValidationResult
    permissions_descriptor: PermissionsDescriptor | MetadataDecodeError | None

    def view_results(self) -> dict[str, ViewValidationResult]:
        return {
            "get_balance": self.get_balance,
            "total_supply": self.total_supply,
            "all_tokens": self.all_tokens,
            "is_operator": self.is_operator,
            "token_metadata": self.token_metadata,
        }


ClassifiedMetadata = Union[BaseOnly, TokenStandard]


def classify(doc: MetadataDocument) -> ClassifiedMetadata:
    """Classify a document as plain contract metadata or token-standard metadata.

    Declaring an ``all_tokens`` view is what makes a document token-standard;
    the interface claim only affects validity.
    """
    if doc.find_view(TOKEN_STANDARD_TRIGGER) is None:
        return BaseOnly(doc)

    permissions: PermissionsDescriptor | MetadataDecodeError | None = None
    raw_permissions = doc.unknown.get("permissions")
    if raw_permissions is not None:
        try:
            permissions = parse_permissions_descriptor(raw_permissions)
        except MetadataDecodeError as e:
            permissions = e

    return TokenStandard(
        document=doc,
        interface_claim=interface_claim(doc),
        get_balance=resolve_view(doc, "get_balance"),
        total_supply=resolve_view(doc, "total_supply"),
        all_tokens=resolve_view(doc, "all_tokens"),
        is_operator=resolve_view(doc, "is_operator"),
        token_metadata=resolve_view(doc, "token_metadata"),
        permissions_descriptor=permissions,
    )


def is_valid(classified: ClassifiedMetadata) -> bool:
    if isinstance(classified, BaseOnly):
        return True
    claim = classified.interface_claim
    if claim is None or claim.kind == "invalid":
        return False
    if isinstance(classified.permissions_descriptor, MetadataDecodeError):
        return False
    views = classified.view_results()
    return all(isinstance(views[name], Valid) for name in MANDATORY_TOKEN_VIEWS)


def token_standard_warnings(classified: ClassifiedMetadata) -> list[str]:
    """Human-readable reasons why a token-standard document is not fully valid."""
    if isinstance(classified, BaseOnly):
        return []
    warnings: list[str] = []
    claim = classified.interface_claim
    if claim is None:
        warnings.append("Interface claim is missing: the document declares token views but no TZIP-012 interface.")
    elif claim.kind == "invalid":
        warnings.append(f"Interface claim is invalid: {claim.text!r}.")
    views = classified.view_results()
    for name in MANDATORY_TOKEN_VIEWS:
        if not isinstance(views[name], Valid):
            warnings.append(f"Mandatory view {name!r} is not valid.")
    if isinstance(classified.permissions_descriptor, MetadataDecodeError):
        warnings.append(f"Permissions-descriptor is invalid: {classified.permissions_descriptor}")
    return warnings
