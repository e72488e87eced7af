#!/usr/bin/env python3
"""
Vesting Claims CLI

Command-line interface for committing allocation tables, generating and
verifying claim proofs, and producing admin claim authorizations.
"""

import json
import logging
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from .allocations import Allocation, AllocationError, AllocationTable
from .hashing import claim_digest
from .merkle.proof import verify_merkle_proof
from .signature import recover_signer, sign_claim
from .utils.hex_helpers import normalize_address

# Configure rich console
console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def load_table(allocations: str) -> AllocationTable:
    try:
        return AllocationTable.from_file(allocations)
    except AllocationError as e:
        raise click.ClickException(str(e))


def format_proof_result(result_dict: Dict[str, Any]) -> str:
    """Format proof result for JSON output."""
    return json.dumps(result_dict, indent=2)


def print_claim_proof(result, format_output: str = "table"):
    """Print a claim proof as JSON or as a rich table."""
    if format_output == "json":
        click.echo(format_proof_result(result.to_dict()))
        return

    table = Table(title="Claim Proof")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Claimant", result.claimant)
    table.add_row("Amount", str(result.amount))
    table.add_row("Unlock Time", str(result.unlock_time) if result.unlock_time is not None else "-")
    table.add_row("Leaf Index", str(result.index))
    table.add_row("Root", f"0x{result.root.hex()}")
    for key, value in result.metadata.items():
        table.add_row(key.replace("_", " ").title(), str(value))

    console.print(table)
    console.print("\n[bold cyan]Proof Steps:[/bold cyan]")
    for i, step in enumerate(result.proof):
        console.print(f"  {i:2d}: 0x{step.hex()}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose: bool):
    """
    Vesting Claims CLI - Merkle proofs and admin authorizations for token vesting.

    Commit an allocation table to a Merkle root, hand claimants their proofs,
    and sign out-of-band claim authorizations.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command("build-tree")
@click.argument("allocations", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the claims document (root + all proofs) to this file")
def build_tree(allocations: str, output: Optional[str]):
    """
    Commit an allocation table and print its Merkle root.

    ALLOCATIONS: JSON or CSV file of address, amount[, unlock_time]
    """
    table = load_table(allocations)

    summary = Table(title="Allocation Tree")
    summary.add_column("Property", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Merkle Root", table.hex_root)
    summary.add_row("Allocations", str(len(table)))
    summary.add_row("Token Total", str(table.total_amount))
    summary.add_row("Tree Depth", str(table.tree.depth))
    console.print(summary)

    if output:
        with open(output, "w") as f:
            json.dump(table.export(), f, indent=2)
        console.print(f"[green]Wrote claims document to {output}[/green]")


@cli.command()
@click.argument("address")
@click.option("--allocations", "-a", required=True, type=click.Path(exists=True, dir_okay=False), help="Allocation table file")
@click.option("--format", "format_output", type=click.Choice(["table", "json"]), default="table", help="Output format")
def proof(address: str, allocations: str, format_output: str):
    """
    Generate the Merkle proof for ADDRESS.
    """
    table = load_table(allocations)
    try:
        result = table.get_claim_proof(address)
    except (AllocationError, ValueError) as e:
        raise click.ClickException(str(e))
    print_claim_proof(result, format_output)


@cli.command()
@click.argument("address")
@click.argument("amount", type=int)
@click.option("--unlock-time", type=int, default=None, help="Per-leaf unlock timestamp")
@click.option("--proof", "proof_steps", multiple=True, help="Proof step (repeat for each step)")
@click.option("--root", type=str, help="Root to verify against")
@click.option("--allocations", "-a", type=click.Path(exists=True, dir_okay=False), help="Take root and proof from this allocation table")
def verify(address: str, amount: int, unlock_time: Optional[int], proof_steps, root: Optional[str], allocations: Optional[str]):
    """
    Verify that (ADDRESS, AMOUNT[, unlock time]) is committed under a root.

    Either pass --root and --proof explicitly, or --allocations to use the
    table's root and the proof it generates for ADDRESS.
    """
    try:
        leaf = Allocation(normalize_address(address), amount, unlock_time).encode()
    except ValueError as e:
        raise click.ClickException(str(e))

    steps = list(proof_steps)
    if allocations:
        table = load_table(allocations)
        root = root or table.hex_root
        if not steps and address in table:
            steps = table.get_claim_proof(address).hex_proof()
    if not root:
        raise click.ClickException("Provide --root or --allocations")

    valid = verify_merkle_proof(leaf, steps, root)
    if valid:
        console.print(f"[green]Valid proof for {address} under {root}[/green]")
    else:
        console.print(f"[red]Invalid proof for {address} under {root}[/red]")
        raise SystemExit(1)


@cli.command()
@click.argument("claimant")
@click.argument("total_amount", type=int)
@click.argument("amount", type=int)
@click.argument("unlock_time", type=int)
@click.option("--private-key", envvar="VESTING_ADMIN_PRIVATE_KEY", required=True, help="Admin private key (or VESTING_ADMIN_PRIVATE_KEY)")
def sign(claimant: str, total_amount: int, amount: int, unlock_time: int, private_key: str):
    """
    Sign an admin claim authorization.

    Prints the signature CLAIMANT passes to claim_by_admin_signature.
    """
    try:
        signature = sign_claim(private_key, claimant, total_amount, amount, unlock_time)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(signature)


@cli.command()
@click.argument("claimant")
@click.argument("total_amount", type=int)
@click.argument("amount", type=int)
@click.argument("unlock_time", type=int)
@click.argument("signature")
def recover(claimant: str, total_amount: int, amount: int, unlock_time: int, signature: str):
    """
    Recover the signer of a claim authorization.
    """
    try:
        digest = claim_digest(claimant, total_amount, amount, unlock_time)
    except ValueError as e:
        raise click.ClickException(str(e))

    signer = recover_signer(digest, signature)
    if signer is None:
        raise click.ClickException("Malformed signature")
    click.echo(signer)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--dev", is_flag=True, help="Enable auto-reload")
def serve(host: str, port: int, dev: bool):
    """
    Start the claims REST API (configured from VESTING_* environment variables).
    """
    from .api.rest_api import run_server

    run_server(host=host, port=port, dev=dev)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
