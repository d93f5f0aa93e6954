# starledger/cli/main.py
"""
CLI for registering stars and inspecting, verifying and exporting the ledger.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from starledger.config import LedgerSettings
from starledger.core.errors import (
    AppendError,
    ChainError,
    DecodeError,
    InvalidStar,
    VerificationFailed,
)
from starledger.core.types import Block
from starledger.service import LedgerService

app = typer.Typer(
    name="starledger",
    help="Register stars on a self-verifying ledger and audit its integrity",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _open_service(ctx: typer.Context, db: Optional[Path]) -> LedgerService:
    db = db or (ctx.obj or {}).get("db")
    try:
        settings = LedgerSettings.from_env(db)
        return LedgerService.open(settings)
    except (sqlite3.Error, ValueError, OSError, AppendError) as e:
        console.print(f"[red]Failed to open ledger: {escape(str(e))}[/]")
        raise typer.Exit(1)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not allowed in star data")


def _print_block(block: Block) -> None:
    table = Table(title=f"Block {block.height}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("height", str(block.height))
    table.add_row("timestamp", str(block.timestamp))
    table.add_row("previous_hash", block.previous_hash or "—")
    table.add_row("hash", block.hash)
    try:
        payload = Text(json.dumps(block.decode_payload().to_dict(), sort_keys=True))
    except DecodeError as e:
        payload = Text(f"undecodable: {e}", style="red")
    table.add_row("payload", payload)
    console.print(table)


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Path to SQLite ledger (overrides STARLEDGER_DB_PATH env var)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Manage a local star registry ledger."""
    _configure_logging(verbose)
    ctx.obj = {"db": db}


@app.command()
def init(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Create the ledger (and its genesis block) if it does not exist yet."""
    service = _open_service(ctx, db)
    try:
        genesis = service.get_block_by_height(0)
        console.print(f"[green]Ledger ready[/] at height {service.get_height()}")
        console.print(f"  genesis: {genesis.hash}")
    finally:
        service.close()


@app.command()
def height(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Print the current chain height."""
    service = _open_service(ctx, db)
    try:
        console.print(str(service.get_height()))
    finally:
        service.close()


@app.command()
def challenge(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Address that will sign the challenge"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Issue an ownership challenge message to sign."""
    service = _open_service(ctx, db)
    try:
        console.print(service.request_challenge(address), markup=False, highlight=False)
    finally:
        service.close()


@app.command()
def submit(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Claiming address"),
    message: str = typer.Argument(..., help="Challenge message that was signed"),
    signature: str = typer.Argument(..., help="Signature over the challenge"),
    star: str = typer.Option(..., "--star", "-s", help="Star data as JSON"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Submit a signed challenge and register a star."""
    try:
        star_data = json.loads(star, parse_constant=_reject_constant)
    except ValueError as e:
        console.print("[red]--star is not valid JSON[/]")
        console.print(f"  {str(e)}", markup=False)
        raise typer.Exit(2)

    service = _open_service(ctx, db)
    try:
        block = service.submit_star(address, message, signature, star_data)
    except VerificationFailed as e:
        console.print(f"[red]✗ Rejected: {escape(str(e.reason))}[/]")
        raise typer.Exit(1)
    except InvalidStar as e:
        console.print(f"[red]✗ {escape(str(e))}[/]")
        raise typer.Exit(2)
    except ChainError as e:
        console.print(f"[red]✗ Ledger error: {escape(str(e.cause))}[/]")
        for failure in getattr(e.cause, "errors", []):
            console.print(f"  • {failure}", markup=False)
        raise typer.Exit(1)
    finally:
        service.close()

    console.print(f"[green]✓ Star registered[/] at height {block.height}")
    console.print(f"  hash: {block.hash}")


@app.command()
def block(
    ctx: typer.Context,
    height: Optional[int] = typer.Option(None, "--height", help="Block height"),
    hash_: Optional[str] = typer.Option(None, "--hash", help="Block hash"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Show one block, looked up by height or by hash."""
    if (height is None) == (hash_ is None):
        console.print("[red]Pass exactly one of --height or --hash[/]")
        raise typer.Exit(2)

    service = _open_service(ctx, db)
    try:
        found = service.get_block_by_height(height) if height is not None else service.get_block_by_hash(hash_)
    finally:
        service.close()

    if found is None:
        console.print("[yellow]Block not found[/]")
        raise typer.Exit(1)
    _print_block(found)


@app.command()
def stars(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Owner address"),
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """List stars registered to an address."""
    service = _open_service(ctx, db)
    try:
        claims = service.get_stars_by_address(address)
    finally:
        service.close()

    if not claims:
        console.print(f"[yellow]No stars found for '{escape(address)}'[/]")
        return

    table = Table(title=f"Stars owned by {address}")
    table.add_column("#")
    table.add_column("Star")
    for i, claim in enumerate(claims, start=1):
        table.add_row(str(i), Text(json.dumps(claim.star, sort_keys=True)))
    console.print(table)


@app.command()
def verify(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
):
    """Verify the integrity of the whole chain (hashes + links)."""
    service = _open_service(ctx, db)
    try:
        failures = service.validate_ledger()
        top = service.get_height()
    finally:
        service.close()

    if not failures:
        console.print(f"[green]✓ Ledger is valid[/] ({top + 1} blocks)")
        return

    console.print(f"[red]✗ Verification FAILED ({len(failures)} issues):[/]")
    for failure in failures:
        console.print(f"  • {failure}", markup=False)
    raise typer.Exit(1)


@app.command()
def export(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", hidden=True),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: ledger.jsonl)"),
):
    """Export the chain as JSONL (one block record per line, in height order)."""
    service = _open_service(ctx, db)
    try:
        blocks = service.blocks()
    finally:
        service.close()

    out_path = output or Path("ledger.jsonl")
    with open(out_path, "w", encoding="utf-8") as f:
        for b in blocks:
            json.dump(b.to_dict(), f, separators=(",", ":"))
            f.write("\n")

    console.print(f"[green]Exported {len(blocks)} blocks to {out_path}[/]")


if __name__ == "__main__":
    app()
