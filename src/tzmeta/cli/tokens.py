from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from tzmeta.cli.inspect import load_document
from tzmeta.core.classify import classify
from tzmeta.core.errors import MetadataDecodeError, ViewCallError
from tzmeta.core.jobs import JobSlot
from tzmeta.core.micheline import MichelineInt, MichelineNode, from_json, render
from tzmeta.core.ports.node import NodeRpc
from tzmeta.core.tokens import FieldError, TokenRecord, TotalSupply, enumerate_tokens
from tzmeta.core.views import call_view
from tzmeta.models import MichelsonStorageView

console = Console()


def _get_node(node_url: str | None) -> NodeRpc:
    from tzmeta.rpc.config import get_node_rpc

    return get_node_rpc(node_url)


async def _dispose(node: NodeRpc) -> None:
    dispose = getattr(node, "dispose", None)
    if dispose is not None:
        await dispose()


def parse_parameter(text: str | None) -> MichelineNode | None:
    """A bare integer or a Micheline JSON expression."""
    if text is None:
        return None
    try:
        return MichelineInt(value=int(text))
    except ValueError:
        pass
    try:
        return from_json(json.loads(text))
    except (json.JSONDecodeError, MetadataDecodeError) as e:
        raise typer.BadParameter(f"not an integer nor Micheline JSON: {e}") from e


def _supply_cell(supply: TotalSupply | FieldError | None) -> str:
    if supply is None:
        return ""
    if isinstance(supply, FieldError):
        return f"[red]{supply.message}[/red]"
    if supply.decimals is None:
        return f"{supply.raw} Units (no decimals)"
    return f"{supply.display} ({supply.raw} Units)"


def _render_tokens(records: list[TokenRecord]) -> None:
    if not records:
        console.print("There are no tokens :(")
        return
    table = Table("Token Id", "Total Supply", "Symbol", "Name", "Decimals", "Extras")
    for r in records:
        if isinstance(r.extras, FieldError):
            extras = f"[red]{r.extras.message}[/red]"
        else:
            extras = ", ".join(f"{k!r} → {v!r}" for k, v in r.extras)
        table.add_row(
            f"{r.token_id:04d}",
            _supply_cell(r.total_supply),
            r.symbol or "",
            r.name or "",
            r.decimals or "",
            extras,
        )
    console.print(table)


def tokens(
    path: Annotated[Path, typer.Argument(help="Path to a metadata JSON document.")],
    address: Annotated[str, typer.Option(help="Address of the token contract.")],
    node: Annotated[str | None, typer.Option(help="Node RPC URL (default: $TZMETA_NODE_URL).")] = None,
) -> None:
    """Enumerate the tokens of a token-standard contract."""
    classified = classify(load_document(path))
    rpc = _get_node(node)
    slot: JobSlot[list[TokenRecord]] = JobSlot("tokens")

    async def _run() -> None:
        try:
            outcome = await enumerate_tokens(classified, rpc, address, slot)
        finally:
            await _dispose(rpc)
        for line in outcome.log:
            console.print(f"[dim]Exploring tokens → {line}[/dim]")
        if not outcome.ok:
            console.print(f"[red]Error:[/red] {outcome.error}")
            raise typer.Exit(1)
        _render_tokens(outcome.value or [])

    asyncio.run(_run())


def call(
    path: Annotated[Path, typer.Argument(help="Path to a metadata JSON document.")],
    view_name: Annotated[str, typer.Argument(help="Name of the off-chain view.")],
    address: Annotated[str, typer.Option(help="Address of the contract to hit the view with.")],
    parameter: Annotated[str | None, typer.Option(help="Integer or Micheline JSON parameter.")] = None,
    node: Annotated[str | None, typer.Option(help="Node RPC URL (default: $TZMETA_NODE_URL).")] = None,
) -> None:
    """Call one off-chain view."""
    doc = load_document(path)
    view = doc.find_view(view_name)
    if view is None:
        console.print(f"[red]No view named {view_name!r}.[/red]")
        raise typer.Exit(1)
    candidates = view.michelson_implementations()
    if not candidates:
        console.print(f"[red]View {view_name!r} has no Michelson implementation.[/red]")
        raise typer.Exit(1)
    impl: MichelsonStorageView = candidates[0][1]
    param = parse_parameter(parameter)
    rpc = _get_node(node)

    async def _run() -> None:
        try:
            result = await call_view(
                rpc, address, impl, param, log=lambda line: console.print(f"[dim]{line}[/dim]"), name=view_name
            )
        except ViewCallError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        finally:
            await _dispose(rpc)
        console.print(f"[bold]Result:[/bold] {render(result.result)} : {render(impl.return_type)}")
        console.print(f"Called contract: {address}")
        console.print(f"Current storage: {render(result.storage)}")

    asyncio.run(_run())
