"""Unit tests for metadata document parsing."""

import json
from typing import Any

import pytest

from tzmeta.core.errors import MetadataDecodeError
from tzmeta.core.metadata import (
    InterfaceClaim,
    interface_claim,
    parse_author,
    parse_metadata,
    parse_permissions_descriptor,
)
from tzmeta.core.micheline import MichelineInt, MichelineString, prim, seq
from tzmeta.models import (
    DynamicErrorTranslation,
    MetadataDocument,
    MichelsonStorageView,
    RestApiQuery,
    StaticErrorTranslation,
)


class TestParseMetadata:
    """Tests for parse_metadata."""

    def test_empty_object(self) -> None:
        doc = parse_metadata("{}")
        assert doc.name is None
        assert doc.views == ()
        assert doc.unknown == {}

    def test_sample_document(self, token_document: MetadataDocument) -> None:
        assert token_document.name == "Sample FA2"
        assert token_document.license is not None
        assert token_document.license.name == "MIT"
        assert [v.name for v in token_document.views] == [
            "get_balance",
            "total_supply",
            "all_tokens",
            "is_operator",
            "token_metadata",
        ]
        all_tokens = token_document.find_view("all_tokens")
        assert all_tokens is not None
        assert all_tokens.is_pure is True
        impl = all_tokens.implementations[0]
        assert isinstance(impl, MichelsonStorageView)
        assert impl.parameter is None
        assert impl.return_type == prim("list", prim("nat"))
        assert impl.code == seq(prim("DROP"), prim("NIL", prim("nat")))

    def test_accepts_text_bytes_and_mappings(self, token_metadata_json: dict[str, Any]) -> None:
        from_text = parse_metadata(json.dumps(token_metadata_json))
        from_bytes = parse_metadata(json.dumps(token_metadata_json).encode())
        from_mapping = parse_metadata(token_metadata_json)
        assert from_text == from_bytes == from_mapping

    def test_unknown_keys_are_preserved_in_order(self, token_metadata_json: dict[str, Any]) -> None:
        token_metadata_json["x-custom"] = {"nested": [1, 2]}
        doc = parse_metadata(token_metadata_json)
        assert list(doc.unknown) == ["permissions", "x-custom"]
        assert doc.unknown["x-custom"] == {"nested": [1, 2]}

    def test_rest_api_implementation(self) -> None:
        doc = parse_metadata(
            {
                "views": [
                    {
                        "name": "price",
                        "implementations": [
                            {"restApiQuery": {"specificationUri": "https://example.com/api.json", "path": "/price"}}
                        ],
                    }
                ]
            }
        )
        view = doc.views[0]
        assert view.is_pure is False
        assert isinstance(view.implementations[0], RestApiQuery)
        assert view.implementations[0].method == "GET"
        assert view.michelson_implementations() == []

    def test_error_translations(self) -> None:
        doc = parse_metadata(
            {
                "errors": [
                    {"error": {"int": "42"}, "expansion": {"string": "Too low"}, "languages": ["en"]},
                    {"view": "explain_error"},
                ]
            }
        )
        static, dynamic = doc.errors
        assert isinstance(static, StaticErrorTranslation)
        assert static.error == MichelineInt(value=42)
        assert static.expansion == MichelineString(value="Too low")
        assert isinstance(dynamic, DynamicErrorTranslation)
        assert dynamic.view_name == "explain_error"

    def test_find_view_returns_first_match(self) -> None:
        doc = parse_metadata({"views": [{"name": "v", "description": "first"}, {"name": "v", "description": "second"}]})
        view = doc.find_view("v")
        assert view is not None
        assert view.description == "first"
        assert doc.find_view("missing") is None


class TestParseMetadataErrors:
    """Errors carry the path of the offending value."""

    def test_invalid_json(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata("{")
        assert exc.value.path == ()

    def test_not_an_object(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata("[1, 2]")
        assert exc.value.path == ()

    def test_wrong_field_type(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata({"name": 12})
        assert exc.value.path == ("name",)

    def test_nested_micheline_error(self, token_metadata_json: dict[str, Any]) -> None:
        body = token_metadata_json["views"][0]["implementations"][0]["michelsonStorageView"]
        body["returnType"] = {"prim": 5}
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata(token_metadata_json)
        assert exc.value.path == ("views", 0, "implementations", 0, "michelsonStorageView", "returnType", "prim")
        assert exc.value.actual == 5
        assert exc.value.json_path == "$.views[0].implementations[0].michelsonStorageView.returnType.prim"

    def test_error_translation_path_has_only_document_steps(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata({"errors": [{"error": {"int": "x"}, "expansion": {"string": "e"}}]})
        assert exc.value.path == ("errors", 0, "error", "int")
        assert exc.value.actual == "x"

    def test_missing_field_is_the_last_step(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata({"views": [{"name": "v", "implementations": [{"michelsonStorageView": {"code": []}}]}]})
        assert exc.value.path == ("views", 0, "implementations", 0, "michelsonStorageView", "returnType")

    def test_unexpected_field_in_nested_object(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_metadata({"license": {"name": "MIT", "url": "x"}})
        assert exc.value.path == ("license", "url")


class TestPermissions:
    def test_valid_descriptor(self, token_metadata_json: dict[str, Any]) -> None:
        descriptor = parse_permissions_descriptor(token_metadata_json["permissions"])
        assert descriptor.operator == "owner-or-operator-transfer"
        assert descriptor.custom is None

    def test_custom_policy(self) -> None:
        descriptor = parse_permissions_descriptor(
            {
                "operator": "no-transfer",
                "receiver": "optional-owner-hook",
                "sender": "required-owner-hook",
                "custom": {"tag": "allowlist", "config-api": "KT1abc"},
            }
        )
        assert descriptor.custom is not None
        assert descriptor.custom.config_api == "KT1abc"

    def test_invalid_descriptor_path_is_prefixed(self) -> None:
        with pytest.raises(MetadataDecodeError) as exc:
            parse_permissions_descriptor({"operator": "anyone", "receiver": "owner-no-hook", "sender": "owner-no-hook"})
        assert exc.value.path == ("permissions", "operator")


@pytest.mark.parametrize(
    "interfaces,expected",
    [
        (["TZIP-012-2020-11-17"], InterfaceClaim(kind="version", text="TZIP-012-2020-11-17", version="2020-11-17")),
        (["TZIP-016", "TZIP-012"], InterfaceClaim(kind="just_interface", text="TZIP-012")),
        (["TZIP-12"], InterfaceClaim(kind="just_interface", text="TZIP-12")),
        (["TZIP-12 beta"], InterfaceClaim(kind="version", text="TZIP-12 beta", version="beta")),
        (["TZIP-012x"], InterfaceClaim(kind="invalid", text="TZIP-012x")),
        (["TZIP-0120"], None),
        (["TZIP-016"], None),
        ([], None),
    ],
)
def test_interface_claim(interfaces: list[str], expected: InterfaceClaim | None) -> None:
    assert interface_claim(parse_metadata({"interfaces": interfaces})) == expected


def test_parse_author_with_url() -> None:
    author = parse_author("Jane Doe <https://example.com/jane>")
    assert author.name == "Jane Doe"
    assert author.url == "https://example.com/jane"
    assert author.email is None


def test_parse_author_with_email() -> None:
    author = parse_author("  Bob <bob@example.com> ")
    assert author.name == "Bob"
    assert author.email == "bob@example.com"


@pytest.mark.parametrize("text", ["Bob", "Bob <>", "<bob@example.com>", "Bob <example.com>"])
def test_parse_author_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        parse_author(text)
