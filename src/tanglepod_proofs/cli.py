#!/usr/bin/env python3
"""
TanglePod Proofs CLI

Command-line interface for generating beacon chain proofs for TanglePod.
Provides script-friendly commands for credential, checkpoint and stale
balance proofs, pod status, local state inspection and the REST server.
"""

import json
import logging
import sys
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api.beacon_client import BeaconAPIError
from .api.execution_client import ExecutionAPIError
from .api.proof_service import ProofService, ProofServiceError
from .api.prover_client import ProverAPIError
from .config import Settings
from .main import ProofComposer, load_state, to_hex

# Configure rich console
console = Console()
logger = logging.getLogger(__name__)

CLI_ERRORS = (ValueError, BeaconAPIError, ProverAPIError, ExecutionAPIError, ProofServiceError)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_indices(value: Optional[str]) -> List[int]:
    """Parse a comma-separated list of validator indices."""
    if not value:
        raise click.BadParameter("at least one validator index is required", param_hint="--validators")
    try:
        indices = [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a comma-separated list of integers", param_hint="--validators")
    if not indices or any(i < 0 for i in indices):
        raise click.BadParameter("validator indices must be non-negative integers", param_hint="--validators")
    return indices


def _short(value: str, keep: int = 10) -> str:
    return value if len(value) <= 2 * keep + 3 else f"{value[:keep]}...{value[-keep:]}"


def emit_result(result: Dict[str, Any], title: str, output: Optional[str], format_output: str):
    """Write a proof record to a file and/or the terminal."""
    if output:
        with open(output, "w") as f:
            json.dump(result, f, indent=2)
        console.print(f"[green]Proof written to {output}[/green]")

    if format_output == "json":
        if not output:
            print(json.dumps(result, indent=2))
        return

    table = Table(title=title)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in result.items():
        if isinstance(value, dict) and "proof" in value:
            value = f"{len(value['proof'])} proof elements"
        elif isinstance(value, list) and value and isinstance(value[0], dict):
            value = f"{len(value)} proofs"
        elif isinstance(value, str):
            value = _short(value)
        table.add_row(key, str(value))
    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--beacon-node", envvar="BEACON_RPC_URL", help="Beacon node HTTP URL (e.g., http://localhost:5052)")
@click.option("--exec-node", envvar="EXECUTION_RPC_URL", help="Execution node HTTP URL (e.g., http://localhost:8545)")
@click.option("--prover-url", envvar="PROVER_API_URL", help="Lodestar prover URL (defaults to the beacon node)")
@click.option("--network", envvar="TANGLEPOD_NETWORK", help="Network name (mainnet, holesky, sepolia)")
@click.option("--use-prover", is_flag=True, default=None, help="Use the Lodestar prover API for validator proofs")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file for proofs (JSON)")
@click.option("--format", "format_output", type=click.Choice(["json", "table"]), default="json", help="Terminal output format")
@click.pass_context
def cli(ctx, verbose: bool, beacon_node: Optional[str], exec_node: Optional[str],
        prover_url: Optional[str], network: Optional[str], use_prover: Optional[bool],
        output: Optional[str], format_output: str):
    """
    TanglePod Proofs CLI - Generate beacon chain proofs for TanglePod.

    Proofs are generated against the latest finalized beacon block and
    verified locally before they are printed.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["output"] = output
    ctx.obj["format"] = format_output
    try:
        ctx.obj["settings"] = Settings.from_env(
            beacon_url=beacon_node,
            execution_url=exec_node,
            prover_url=prover_url,
            network=network,
            use_prover=use_prover,
        )
    except ValueError as e:
        raise click.ClickException(str(e))


def _service(ctx) -> ProofService:
    return ProofService(ctx.obj["settings"])


@cli.command()
@click.option("--validators", "validators", required=True, help="Validator indices to prove (comma-separated)")
@click.pass_context
def credentials(ctx, validators: str):
    """Generate withdrawal credential proofs."""
    indices = parse_indices(validators)
    try:
        result = _service(ctx).generate_credential_proof(indices)
    except CLI_ERRORS as e:
        logger.error(f"Error generating credential proof: {e}")
        raise click.ClickException(str(e))
    emit_result(result.to_dict(), "Credential Proof", ctx.obj["output"], ctx.obj["format"])


@cli.command()
@click.option("--validators", "validators", required=True, help="Validator indices to include in checkpoint (comma-separated)")
@click.pass_context
def checkpoint(ctx, validators: str):
    """Generate checkpoint balance proofs."""
    indices = parse_indices(validators)
    try:
        result = _service(ctx).generate_checkpoint_proof(indices)
    except CLI_ERRORS as e:
        logger.error(f"Error generating checkpoint proof: {e}")
        raise click.ClickException(str(e))
    emit_result(result.to_dict(), "Checkpoint Proof", ctx.obj["output"], ctx.obj["format"])


@cli.command("stale-balance")
@click.option("--validator", "validator_index", type=click.IntRange(min=0), required=True, help="Validator index to prove slashing for")
@click.pass_context
def stale_balance(ctx, validator_index: int):
    """Generate a stale balance proof for slashing enforcement."""
    try:
        result = _service(ctx).generate_stale_balance_proof(validator_index)
    except CLI_ERRORS as e:
        logger.error(f"Error generating stale balance proof: {e}")
        raise click.ClickException(str(e))
    emit_result(result.to_dict(), "Stale Balance Proof", ctx.obj["output"], ctx.obj["format"])


@cli.command()
@click.option("--pod-address", required=True, help="TanglePod contract address")
@click.option("--validators", "validators", help="Only check these validator indices (comma-separated)")
@click.pass_context
def status(ctx, pod_address: str, validators: Optional[str]):
    """Check which validators point their withdrawal credentials at a pod."""
    indices = parse_indices(validators) if validators else None
    try:
        result = _service(ctx).get_pod_status(pod_address, indices)
    except CLI_ERRORS as e:
        raise click.ClickException(str(e))

    if ctx.obj["format"] == "json" or ctx.obj["output"]:
        emit_result(result, "Pod Status", ctx.obj["output"], ctx.obj["format"])
        return

    table = Table(title=f"Pod {pod_address}")
    table.add_column("Index", style="cyan")
    table.add_column("Pubkey", style="green")
    table.add_column("Balance (gwei)", style="yellow")
    table.add_column("Status")
    labels = {0: "INACTIVE", 1: "ACTIVE", 2: "WITHDRAWN"}
    for v in result["validators"]:
        table.add_row(str(v["index"]), _short(v["pubkey"]), str(v["balanceGwei"]), labels[v["status"]])
    console.print(table)
    console.print(
        f"Active validators: {result['activeValidatorCount']}  "
        f"Restaked: {result['totalRestakedGwei']} gwei"
    )


@cli.command()
@click.argument("state_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--validator", "validator_index", type=click.IntRange(min=0), help="Also print proofs for this validator")
@click.pass_context
def inspect(ctx, state_file: str, validator_index: Optional[int]):
    """Inspect a beacon state SSZ file."""
    try:
        console.print(f"[cyan]Inspecting {state_file}...[/cyan]")
        composer = ProofComposer(load_state(state_file))
        state = composer.state

        table = Table(title="Beacon State Information")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Slot", str(state.slot))
        table.add_row("Genesis Time", str(state.genesis_time))
        table.add_row("Fork Version", to_hex(state.fork.current_version))
        table.add_row("Validators", str(len(state.validators)))
        table.add_row("Balances", str(len(state.balances)))
        table.add_row("Validators Root", to_hex(composer.validators_root))
        table.add_row("Balances Root", to_hex(composer.balances_root))
        table.add_row("State Root", to_hex(composer.state_root))
        console.print(table)

        if validator_index is not None:
            result = {
                "stateRoot": to_hex(composer.state_root),
                "validatorProof": composer.validator_proof(validator_index).to_dict(),
                "balanceContainerProof": composer.balance_container_proof().to_dict(),
                "balanceProof": composer.balance_proof(validator_index).to_dict(),
            }
            emit_result(result, f"Validator {validator_index}", ctx.obj["output"], "json")
    except CLI_ERRORS as e:
        console.print(f"[red]Inspection failed: {e}[/red]", style="bold")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--dev", is_flag=True, help="Enable development mode with auto-reload")
@click.pass_context
def serve(ctx, host: str, port: int, dev: bool):
    """Start the REST API server."""
    from .api.rest_api import run_server

    console.print(
        Panel(
            f"Starting TanglePod Proofs API Server\n\n"
            f"Server: http://{host}:{port}\n"
            f"Docs: http://{host}:{port}/docs\n"
            f"Health: http://{host}:{port}/health\n\n"
            f"Press Ctrl+C to stop",
            title="API Server",
            border_style="green",
        )
    )
    try:
        run_server(host=host, port=port, dev=dev, settings=ctx.obj["settings"])
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
