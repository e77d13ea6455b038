import copy
from collections.abc import Callable
from typing import Any

import pytest

from tzmeta.core.classify import BaseOnly, TokenStandard, classify, is_valid, token_standard_warnings
from tzmeta.core.errors import MetadataDecodeError
from tzmeta.core.metadata import parse_metadata
from tzmeta.core.validation import Invalid, Missing, Valid
from tzmeta.models import PermissionsDescriptor


def test_document_without_all_tokens_is_base_only(token_metadata_json: dict[str, Any]) -> None:
    token_metadata_json["views"] = [v for v in token_metadata_json["views"] if v["name"] != "all_tokens"]
    doc = parse_metadata(token_metadata_json)
    classified = classify(doc)
    assert classified == BaseOnly(doc)
    assert is_valid(classified)
    assert token_standard_warnings(classified) == []


def test_empty_document_is_base_only() -> None:
    assert isinstance(classify(parse_metadata({})), BaseOnly)


def test_sample_is_valid_token_standard(token_standard: TokenStandard) -> None:
    assert token_standard.interface_claim is not None
    assert token_standard.interface_claim.version == "2020-11-17"
    assert all(isinstance(r, Valid) for r in token_standard.view_results().values())
    assert isinstance(token_standard.permissions_descriptor, PermissionsDescriptor)
    assert is_valid(token_standard)
    assert token_standard_warnings(token_standard) == []


def _sample(raw: dict[str, Any]) -> dict[str, Any]:
    return raw


def _invalid_permissions(raw: dict[str, Any]) -> dict[str, Any]:
    raw["permissions"] = {"operator": "anyone"}
    return raw


def _without_all_tokens(raw: dict[str, Any]) -> dict[str, Any]:
    raw["views"] = [v for v in raw["views"] if v["name"] != "all_tokens"]
    return raw


def _empty(raw: dict[str, Any]) -> dict[str, Any]:
    return {}


@pytest.mark.parametrize("variant", [_sample, _invalid_permissions, _without_all_tokens, _empty])
def test_classify_is_pure(
    variant: Callable[[dict[str, Any]], dict[str, Any]], token_metadata_json: dict[str, Any]
) -> None:
    raw = variant(token_metadata_json)
    doc = parse_metadata(raw)
    first = classify(doc)
    assert classify(doc) == first
    assert classify(parse_metadata(copy.deepcopy(raw))) == first
    assert is_valid(classify(doc)) == is_valid(first)
    assert token_standard_warnings(classify(doc)) == token_standard_warnings(first)


def test_missing_interface_claim_is_a_warning(token_metadata_json: dict[str, Any]) -> None:
    token_metadata_json["interfaces"] = ["TZIP-016"]
    classified = classify(parse_metadata(token_metadata_json))
    assert isinstance(classified, TokenStandard)
    assert classified.interface_claim is None
    assert not is_valid(classified)
    warnings = token_standard_warnings(classified)
    assert len(warnings) == 1
    assert warnings[0].startswith("Interface claim is missing")


def test_invalid_interface_claim(token_metadata_json: dict[str, Any]) -> None:
    token_metadata_json["interfaces"] = ["TZIP-012_draft"]
    classified = classify(parse_metadata(token_metadata_json))
    assert isinstance(classified, TokenStandard)
    assert classified.interface_claim is not None
    assert classified.interface_claim.kind == "invalid"
    assert not is_valid(classified)


def test_invalid_permissions_descriptor(token_metadata_json: dict[str, Any]) -> None:
    token_metadata_json["permissions"] = {"operator": "anyone"}
    doc = parse_metadata(token_metadata_json)
    classified = classify(doc)
    assert isinstance(classified, TokenStandard)
    assert isinstance(classified.permissions_descriptor, MetadataDecodeError)
    assert classified.permissions_descriptor.path[0] == "permissions"
    assert not is_valid(classified)
    assert any(w.startswith("Permissions-descriptor is invalid") for w in token_standard_warnings(classified))
    assert classify(doc) == classified


def test_missing_permissions_is_accepted(token_metadata_json: dict[str, Any]) -> None:
    del token_metadata_json["permissions"]
    classified = classify(parse_metadata(token_metadata_json))
    assert isinstance(classified, TokenStandard)
    assert classified.permissions_descriptor is None
    assert is_valid(classified)


def test_get_balance_is_optional(token_metadata_json: dict[str, Any]) -> None:
    token_metadata_json["views"] = [v for v in token_metadata_json["views"] if v["name"] != "get_balance"]
    classified = classify(parse_metadata(token_metadata_json))
    assert isinstance(classified, TokenStandard)
    assert classified.get_balance == Missing()
    assert is_valid(classified)


def test_invalid_mandatory_view(token_metadata_json: dict[str, Any]) -> None:
    total_supply = token_metadata_json["views"][1]
    total_supply["implementations"][0]["michelsonStorageView"]["returnType"] = {"prim": "int"}
    classified = classify(parse_metadata(token_metadata_json))
    assert isinstance(classified, TokenStandard)
    assert isinstance(classified.total_supply, Invalid)
    assert not is_valid(classified)
    assert token_standard_warnings(classified) == ["Mandatory view 'total_supply' is not valid."]
