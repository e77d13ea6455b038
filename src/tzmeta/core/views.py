from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from tzmeta.core.errors import ViewCallError
from tzmeta.core.micheline import UNIT, MichelineNode, render
from tzmeta.core.ports.node import NodeRpc
from tzmeta.models import MichelsonStorageView

logger = logging.getLogger(__name__)

LogFn = Callable[[str], None]


@dataclass(frozen=True)
class ViewCallResult:
    result: MichelineNode
    storage: MichelineNode


def _default_parameter(view: MichelsonStorageView, parameter: MichelineNode | None) -> MichelineNode:
    if view.parameter is None:
        if parameter is not None and parameter != UNIT:
            raise ViewCallError(f"This view takes no parameter, got {render(parameter)}")
        return UNIT
    if parameter is None:
        raise ViewCallError(f"This view expects a parameter of type {render(view.parameter)}")
    return parameter


async def call_view(
    node: NodeRpc,
    address: str,
    view: MichelsonStorageView,
    parameter: MichelineNode | None = None,
    log: LogFn | None = None,
    name: str | None = None,
) -> ViewCallResult:
    """Simulate ``view`` against the current storage of the contract at ``address``.

    ``name`` only labels the progress line.  All failures are raised as
    ``ViewCallError`` with a human-readable message.
    """
    actual_parameter = _default_parameter(view, parameter)
    label = f"view {name!r}" if name else "view"
    line = f"Calling {label} on {address} with parameter {render(actual_parameter)}"
    if log is not None:
        log(line)
    logger.info(line)
    try:
        result, storage = await node.simulate_view(address, view, actual_parameter)
    except ViewCallError:
        raise
    except Exception as e:
        logger.warning("View call on %s failed: %s", address, e)
        raise ViewCallError(str(e) or type(e).__name__) from e
    return ViewCallResult(result=result, storage=storage)
