"""Shared fixtures and helpers for tests."""

import copy
from pathlib import Path
from typing import Any

import pytest

from tzmeta.core.classify import TokenStandard, classify
from tzmeta.core.metadata import parse_metadata
from tzmeta.models import MetadataDocument
from tzmeta.rpc import InMemoryNodeRpc

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------


def _prim(name: str, *args: Any, annots: list[str] | None = None) -> dict[str, Any]:
    out: dict[str, Any] = {"prim": name}
    if args:
        out["args"] = list(args)
    if annots:
        out["annots"] = annots
    return out


def _view(name: str, parameter: Any, return_type: Any, code: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"returnType": return_type, "code": code}
    if parameter is not None:
        body["parameter"] = parameter
    return {"name": name, "pure": True, "implementations": [{"michelsonStorageView": body}]}


TOKEN_METADATA_JSON: dict[str, Any] = {
    "name": "Sample FA2",
    "version": "1.0.0",
    "license": {"name": "MIT"},
    "authors": ["Jane Doe <https://example.com/jane>"],
    "interfaces": ["TZIP-012-2020-11-17", "TZIP-016"],
    "views": [
        _view(
            "get_balance",
            _prim("pair", _prim("address", annots=["%owner"]), _prim("nat", annots=["%token_id"])),
            _prim("nat"),
            [_prim("CDR"), _prim("DROP"), _prim("PUSH", _prim("nat"), {"int": "0"})],
        ),
        _view("total_supply", _prim("nat"), _prim("nat"), [_prim("CAR")]),
        _view("all_tokens", None, _prim("list", _prim("nat")), [_prim("DROP"), _prim("NIL", _prim("nat"))]),
        _view(
            "is_operator",
            _prim(
                "pair",
                _prim("address", annots=["%owner"]),
                _prim("pair", _prim("address", annots=["%operator"]), _prim("nat", annots=["%token_id"])),
            ),
            _prim("bool"),
            [_prim("DROP"), _prim("PUSH", _prim("bool"), _prim("False"))],
        ),
        _view(
            "token_metadata",
            _prim("nat"),
            _prim(
                "pair",
                _prim("nat", annots=["%token_id"]),
                _prim("map", _prim("string"), _prim("bytes"), annots=["%token_info"]),
            ),
            [_prim("CAR"), _prim("EMPTY_MAP", _prim("string"), _prim("bytes")), _prim("SWAP"), _prim("PAIR")],
        ),
    ],
    "permissions": {
        "operator": "owner-or-operator-transfer",
        "receiver": "owner-no-hook",
        "sender": "owner-no-hook",
    },
}


@pytest.fixture
def token_metadata_json() -> dict[str, Any]:
    """A fresh copy of a valid token-standard metadata document."""
    return copy.deepcopy(TOKEN_METADATA_JSON)


@pytest.fixture
def token_document(token_metadata_json: dict[str, Any]) -> MetadataDocument:
    return parse_metadata(token_metadata_json)


@pytest.fixture
def token_standard(token_document: MetadataDocument) -> TokenStandard:
    classified = classify(token_document)
    assert isinstance(classified, TokenStandard)
    return classified


@pytest.fixture
def in_memory_node() -> InMemoryNodeRpc:
    return InMemoryNodeRpc()
