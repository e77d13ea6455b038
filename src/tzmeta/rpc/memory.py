from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tzmeta.core.micheline import UNIT, MichelineNode
from tzmeta.models import MichelsonStorageView

Handler = Callable[[MichelineNode], MichelineNode | Awaitable[MichelineNode]]


@dataclass(frozen=True)
class InMemoryViewCall:
    address: str
    code: MichelineNode
    parameter: MichelineNode


class InMemoryNodeRpc:
    """A node stand-in that answers view simulations from registered handlers.

    Handlers are looked up by the view's code and get the call parameter; they
    may be coroutines and may raise to simulate a node-side failure.
    """

    def __init__(self, storage: MichelineNode = UNIT) -> None:
        self.storage = storage
        self.calls: list[InMemoryViewCall] = []
        self._handlers: dict[MichelineNode, Handler] = {}

    def register(self, view: MichelsonStorageView, handler: Handler | MichelineNode) -> None:
        if callable(handler):
            self._handlers[view.code] = handler
        else:
            self._handlers[view.code] = lambda _parameter, _result=handler: _result

    async def simulate_view(
        self,
        address: str,
        view: MichelsonStorageView,
        parameter: MichelineNode,
        storage_hint: MichelineNode | None = None,
    ) -> tuple[MichelineNode, MichelineNode]:
        self.calls.append(InMemoryViewCall(address=address, code=view.code, parameter=parameter))
        handler = self._handlers.get(view.code)
        if handler is None:
            raise RuntimeError(f"No script registered at {address} for this view")
        result = handler(parameter)
        if inspect.isawaitable(result):
            result = await result
        return result, storage_hint if storage_hint is not None else self.storage
