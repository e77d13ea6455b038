from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from tzmeta.core.checks import check_document
from tzmeta.core.classify import BaseOnly, classify, is_valid, token_standard_warnings
from tzmeta.core.errors import MetadataDecodeError, MetadataUriError
from tzmeta.core.metadata import parse_metadata
from tzmeta.core.micheline import render
from tzmeta.core.uri import IpfsUri, Sha256Uri, StorageUri, WebUri, parse_metadata_uri
from tzmeta.core.validation import Invalid, Missing, NoMichelsonImplementation, TypeStatus, ViewValidationResult
from tzmeta.models import MetadataDocument, PermissionsDescriptor

console = Console()


def load_document(path: Path) -> MetadataDocument:
    try:
        return parse_metadata(path.read_bytes())
    except MetadataDecodeError as e:
        console.print(f"[red]Invalid metadata:[/red] {e}")
        raise typer.Exit(1) from e


def _status(status: TypeStatus) -> str:
    if status.kind == "ok":
        return "ok"
    if status.kind == "missing_parameter":
        return "missing"
    if status.kind == "unchecked_parameter":
        return "not defined" if status.found is None else "defined while it shouldn't"
    return f"wrong: {render(status.found) if status.found is not None else 'not found'}"


def describe_view_validation(result: ViewValidationResult) -> str:
    if isinstance(result, Missing):
        return "[yellow]missing[/yellow]"
    if isinstance(result, NoMichelsonImplementation):
        return "[red]invalid: no Michelson implementation[/red]"
    if isinstance(result, Invalid):
        return (
            f"[red]invalid[/red] (parameter {_status(result.parameter_status)}; "
            f"return type {_status(result.return_status)})"
        )
    return f"[green]valid[/green] (implementation #{result.implementation_index})"


def inspect(
    path: Annotated[Path, typer.Argument(help="Path to a metadata JSON document.")],
) -> None:
    """Parse, classify and lint a contract-metadata document."""
    doc = load_document(path)

    table = Table(show_header=False)
    table.add_column("field")
    table.add_column("value")
    table.add_row("Name", doc.name or "")
    table.add_row("Version", doc.version or "")
    table.add_row("Interfaces", ", ".join(doc.interfaces))
    table.add_row("Authors", ", ".join(doc.authors))
    table.add_row("Views", ", ".join(f"{v.name} ({'pure' if v.is_pure else 'impure'})" for v in doc.views))
    if doc.unknown:
        table.add_row("Unknown fields", ", ".join(doc.unknown))
    console.print(table)

    classified = classify(doc)
    if isinstance(classified, BaseOnly):
        console.print("Contract metadata without token-standard views.")
    else:
        validity = "[green]it seems valid[/green]" if is_valid(classified) else "[red]it is invalid[/red]"
        console.print(f"This looks like a TZIP-12 contract (a.k.a. FA2); {validity}.")
        views = Table("view", "status")
        for name, result in classified.view_results().items():
            views.add_row(name, describe_view_validation(result))
        console.print(views)
        pd = classified.permissions_descriptor
        if pd is None:
            console.print("Permissions-descriptor is not present (assuming default permissions).")
        elif isinstance(pd, PermissionsDescriptor):
            console.print("Permissions-descriptor is valid.")
        else:
            console.print(f"[red]Permissions-descriptor is invalid:[/red] {pd}")
        for warning in token_standard_warnings(classified):
            console.print(f"[yellow]warning:[/yellow] {warning}")

    report = check_document(doc)
    for issue in report.errors:
        console.print(f"[red]error[/red] {issue.code.value}: {issue.message}")
    for issue in report.warnings:
        console.print(f"[yellow]warning[/yellow] {issue.code.value}: {issue.message}")
    if not report.ok:
        raise typer.Exit(1)


def uri(
    text: Annotated[str, typer.Argument(help="Metadata URI to parse.")],
) -> None:
    """Explain how a metadata URI is understood."""
    try:
        parsed = parse_metadata_uri(text)
    except MetadataUriError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    def _describe(u: object, indent: str = "") -> None:
        if isinstance(u, WebUri):
            console.print(f"{indent}Web URL: {u.url}")
        elif isinstance(u, IpfsUri):
            console.print(f"{indent}IPFS URI: CID {u.cid}, path {u.path!r}")
        elif isinstance(u, StorageUri):
            console.print(
                f"{indent}In-Contract-Storage: network {u.network or 'current network'}, "
                f"address {u.address or 'same contract'}, key {u.key!r}"
            )
        elif isinstance(u, Sha256Uri):
            console.print(f"{indent}Hash checked URI, should SHA256-hash to {u.value.hex()}:")
            _describe(u.target, indent + "  ")

    _describe(parsed)
