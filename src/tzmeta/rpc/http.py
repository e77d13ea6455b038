from __future__ import annotations

import logging
from typing import Any

import httpx

from tzmeta.core.errors import ViewCallError
from tzmeta.core.micheline import (
    MichelineNode,
    MichelinePrim,
    MichelineSeq,
    from_json,
    prim,
    render,
    seq,
    to_json,
)
from tzmeta.models import MichelsonStorageView

logger = logging.getLogger(__name__)


def _storage_type(script: Any) -> MichelineNode:
    code = from_json(script.get("code") if isinstance(script, dict) else None)
    if isinstance(code, MichelineSeq):
        for section in code.items:
            if isinstance(section, MichelinePrim) and section.prim == "storage" and len(section.args) == 1:
                return section.args[0]
    raise ViewCallError("Cannot find the storage type in the contract's script")


def view_wrapper_script(view: MichelsonStorageView, storage_type: MichelineNode) -> MichelineSeq:
    """A script running the view's code and keeping its result in the storage."""
    parameter_type = view.parameter if view.parameter is not None else prim("unit")
    return seq(
        prim("parameter", prim("pair", parameter_type, storage_type)),
        prim("storage", prim("option", view.return_type)),
        prim(
            "code",
            seq(prim("CAR"), view.code, prim("SOME"), prim("NIL", prim("operation")), prim("PAIR")),
        ),
    )


class HttpNodeRpc:
    """Simulate views with the node's ``run_code`` RPC."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        chain: str = "main",
        block: str = "head",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.chain = chain
        self.block = block
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def _get(self, path: str) -> Any:
        resp = await self._client.get(path)
        if resp.is_error:
            raise ViewCallError(f"Node returned {resp.status_code} for GET {path}: {resp.text}")
        return resp.json()

    async def _post(self, path: str, body: Any) -> Any:
        resp = await self._client.post(path, json=body)
        if resp.is_error:
            raise ViewCallError(f"Node returned {resp.status_code} for POST {path}: {resp.text}")
        return resp.json()

    async def simulate_view(
        self,
        address: str,
        view: MichelsonStorageView,
        parameter: MichelineNode,
        storage_hint: MichelineNode | None = None,
    ) -> tuple[MichelineNode, MichelineNode]:
        block = f"/chains/{self.chain}/blocks/{self.block}"
        contract = f"{block}/context/contracts/{address}"
        if storage_hint is None:
            storage = from_json(await self._get(f"{contract}/storage"))
        else:
            storage = storage_hint
        storage_type = _storage_type(await self._get(f"{contract}/script"))
        chain_id = await self._get(f"/chains/{self.chain}/chain_id")
        body = {
            "script": to_json(view_wrapper_script(view, storage_type)),
            "storage": {"prim": "None"},
            "input": to_json(prim("Pair", parameter, storage)),
            "amount": "0",
            "balance": "0",
            "chain_id": chain_id,
        }
        logger.debug("run_code on %s with parameter %s", address, render(parameter))
        answer = await self._post(f"{block}/helpers/scripts/run_code", body)
        result_storage = from_json(answer.get("storage") if isinstance(answer, dict) else None)
        if not (isinstance(result_storage, MichelinePrim) and result_storage.prim == "Some" and result_storage.args):
            raise ViewCallError(f"Unexpected result storage: {render(result_storage)}")
        return result_storage.args[0], storage

    async def dispose(self) -> None:
        await self._client.aclose()
