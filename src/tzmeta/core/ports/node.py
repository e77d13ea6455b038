from typing import Protocol

from tzmeta.core.micheline import MichelineNode
from tzmeta.models import MichelsonStorageView


class NodeRpc(Protocol):
    async def simulate_view(
        self,
        address: str,
        view: MichelsonStorageView,
        parameter: MichelineNode,
        storage_hint: MichelineNode | None = None,
    ) -> tuple[MichelineNode, MichelineNode]: ...
