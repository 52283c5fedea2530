#!/usr/bin/env python3
"""
daoledger command-line interface

Drives a contract whose state lives in a JSON snapshot file. The host's job
is done by the global options: --caller is the authenticated account and
--block the current block height for the call.

Examples:
    daoledger --state ./state.json init root
    daoledger --state ./state.json --caller root mint alice 10
    daoledger --state ./state.json --caller alice --block 5 create-dao alice
    daoledger --state ./state.json --caller alice --block 6 vote 1 1 favor
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Callable, Dict, List, Optional

try:
    import click
    from rich import box
    from rich.console import Console
    from rich.table import Table
except ImportError:
    print("ERROR: Required packages not installed. Install with:")
    print("  pip install click rich")
    sys.exit(1)

from daoledger.contracts.dao_contract import DaoContract
from daoledger.core.config import Config
from daoledger.core.events import ContractEvent, EventCollector
from daoledger.core.exceptions import ContractError, DaoLedgerError
from daoledger.core.host import CallContext
from daoledger.core.logging_config import setup_from_config
from daoledger.core.storage import JsonFileStore

logger = logging.getLogger(__name__)

console = Console()


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging."""
    if isinstance(exc, ContractError):
        logger.info("Call rejected: %s", exc.code.value)
        console.print(f"[bold red]Error:[/] {exc.code.value}: {exc}")
    else:
        logger.error("CLI error: %s", exc, exc_info=True)
        console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _open_contract(ctx: click.Context) -> DaoContract:
    store = JsonFileStore(ctx.obj["state_path"])
    return DaoContract.from_store(store, event_sink=ctx.obj["collector"])


def _call_context(ctx: click.Context) -> CallContext:
    caller = ctx.obj["caller"]
    if not caller:
        raise click.UsageError("--caller is required for state-changing commands")
    return CallContext(caller=caller, block_number=ctx.obj["block"])


def _emit_output(ctx: click.Context, payload: Dict[str, Any], title: str) -> None:
    events: List[ContractEvent] = ctx.obj["collector"].events
    if ctx.obj["json_output"]:
        body = dict(payload)
        body["events"] = [event.to_dict() for event in events]
        click.echo(json.dumps(body, default=str))
        return

    table = Table(title=title, show_header=False, box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in payload.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)
    for event in events:
        fields = ", ".join(f"{k}={v}" for k, v in event.to_dict().items() if k != "event")
        console.print(f"[green]event[/] {event.name}({fields})")


def _run(
    ctx: click.Context,
    title: str,
    action: Callable[[DaoContract], Dict[str, Any]],
) -> None:
    try:
        contract = _open_contract(ctx)
        payload = action(contract)
    except (DaoLedgerError, ValueError, TypeError) as exc:
        _cli_fail(exc)
        return
    _emit_output(ctx, payload, title)


@click.group()
@click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False),
    default=lambda: Config.STATE_FILE,
    show_default="$DAOLEDGER_STATE_FILE",
    help="JSON state snapshot to operate on.",
)
@click.option("--caller", default=None, help="Authenticated account making the call.")
@click.option("--block", default=0, type=click.IntRange(min=0), help="Current block height.")
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option("--verbose", is_flag=True, help="Write JSON logs to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    state_path: str,
    caller: Optional[str],
    block: int,
    json_output: bool,
    verbose: bool,
) -> None:
    """Governance ledger: balances, DAOs, proposals, votes and the randomness beacon."""
    setup_from_config(enable_console=verbose)
    ctx.ensure_object(dict)
    ctx.obj["state_path"] = state_path
    ctx.obj["caller"] = caller
    ctx.obj["block"] = block
    ctx.obj["json_output"] = json_output
    ctx.obj["collector"] = EventCollector()


@cli.command()
@click.argument("owner")
@click.pass_context
def init(ctx: click.Context, owner: str) -> None:
    """Deploy a contract owned by OWNER into the state file."""
    try:
        store = JsonFileStore(ctx.obj["state_path"])
        DaoContract(owner, store=store, event_sink=ctx.obj["collector"])
    except (DaoLedgerError, ValueError) as exc:
        _cli_fail(exc)
        return
    _emit_output(ctx, {"owner": owner, "state": ctx.obj["state_path"]}, "Contract deployed")


# ==================== Ledger ====================


@cli.command()
@click.argument("account")
@click.pass_context
def balance(ctx: click.Context, account: str) -> None:
    """Show the balance of ACCOUNT."""
    _run(ctx, "Balance", lambda c: {"account": account, "balance": c.balance(account)})


@cli.command()
@click.argument("target")
@click.argument("amount", type=click.IntRange(min=0))
@click.pass_context
def transfer(ctx: click.Context, target: str, amount: int) -> None:
    """Transfer AMOUNT from the caller to TARGET."""
    call = _call_context(ctx)

    def action(contract: DaoContract) -> Dict[str, Any]:
        contract.transfer(call, target, amount)
        return {"from": call.caller, "to": target, "amount": amount}

    _run(ctx, "Transfer", action)


@cli.command()
@click.argument("target")
@click.argument("amount", type=click.IntRange(min=0))
@click.pass_context
def mint(ctx: click.Context, target: str, amount: int) -> None:
    """Mint AMOUNT to TARGET (contract owner only)."""
    call = _call_context(ctx)

    def action(contract: DaoContract) -> Dict[str, Any]:
        contract.mint(call, target, amount)
        return {"to": target, "amount": amount, "balance": contract.balance(target)}

    _run(ctx, "Mint", action)


# ==================== Governance ====================


@cli.command("create-dao")
@click.argument("owner")
@click.pass_context
def create_dao(ctx: click.Context, owner: str) -> None:
    """Create a DAO owned by OWNER."""
    call = _call_context(ctx)
    _run(ctx, "DAO created", lambda c: {"dao_id": c.create_dao(call, owner), "owner": owner})


@cli.command("create-proposal")
@click.argument("dao_id", type=int)
@click.argument("info")
@click.pass_context
def create_proposal(ctx: click.Context, dao_id: int, info: str) -> None:
    """Open a proposal described by INFO in DAO_ID."""
    call = _call_context(ctx)

    def action(contract: DaoContract) -> Dict[str, Any]:
        proposal_id = contract.create_proposal(call, dao_id, info)
        proposal = contract.get_proposal(dao_id, proposal_id)
        return {
            "dao_id": dao_id,
            "proposal_id": proposal_id,
            "destroy_at": proposal.destroy_at,
        }

    _run(ctx, "Proposal created", action)


@cli.command()
@click.argument("dao_id", type=int)
@click.argument("proposal_id", type=int)
@click.argument("side", type=click.Choice(["favor", "against"]))
@click.pass_context
def vote(ctx: click.Context, dao_id: int, proposal_id: int, side: str) -> None:
    """Vote on PROPOSAL_ID of DAO_ID; SIDE is favor or against."""
    call = _call_context(ctx)
    in_favor = side == "favor"

    def action(contract: DaoContract) -> Dict[str, Any]:
        contract.vote(call, dao_id, proposal_id, in_favor)
        return {
            "dao_id": dao_id,
            "proposal_id": proposal_id,
            "in_favor": in_favor,
            "balance": contract.balance(call.caller),
        }

    _run(ctx, "Vote", action)


@cli.command()
@click.argument("dao_id", type=int)
@click.argument("proposal_id", type=int)
@click.pass_context
def proposal(ctx: click.Context, dao_id: int, proposal_id: int) -> None:
    """Show a proposal with its tally and status at --block."""
    block = ctx.obj["block"]

    def action(contract: DaoContract) -> Dict[str, Any]:
        info = contract.get_proposal(dao_id, proposal_id)
        if info is None:
            raise click.ClickException(f"Proposal {dao_id}/{proposal_id} does not exist")
        tally = contract.proposal_tally(dao_id, proposal_id)
        return {
            "dao_id": dao_id,
            "proposal_id": proposal_id,
            "info": info.info,
            "created_at": info.created_at,
            "destroy_at": info.destroy_at,
            "status": contract.proposal_status(dao_id, proposal_id, block).value,
            "votes_in_favour": info.votes_in_favour,
            "votes_against": info.votes_against,
            "power_in_favour": tally.power_in_favour,
            "power_against": tally.power_against,
        }

    _run(ctx, "Proposal", action)


# ==================== Commit-Reveal Beacon ====================


@cli.command()
@click.argument("value", type=click.IntRange(min=0, max=2**64 - 1))
@click.pass_context
def commit(ctx: click.Context, value: int) -> None:
    """Commit to secret VALUE (hashes it locally, then submits the commitment)."""
    call = _call_context(ctx)

    def action(contract: DaoContract) -> Dict[str, Any]:
        commitment = contract.make_commitment(value)
        contract.submit_masked_value(call, commitment)
        return {"account": call.caller, "commitment": commitment.hex()}

    _run(ctx, "Commitment submitted", action)


@cli.command("submit-masked-value")
@click.argument("commitment_hex")
@click.pass_context
def submit_masked_value(ctx: click.Context, commitment_hex: str) -> None:
    """Submit a commitment computed elsewhere, as hex."""
    call = _call_context(ctx)
    try:
        commitment = bytes.fromhex(commitment_hex)
    except ValueError as exc:
        raise click.BadParameter(f"not valid hex: {exc}", param_hint="COMMITMENT_HEX")

    def action(contract: DaoContract) -> Dict[str, Any]:
        contract.submit_masked_value(call, commitment)
        return {"account": call.caller, "commitment": commitment.hex()}

    _run(ctx, "Commitment submitted", action)


@cli.command()
@click.argument("value", type=click.IntRange(min=0, max=2**64 - 1))
@click.pass_context
def reveal(ctx: click.Context, value: int) -> None:
    """Reveal the caller's secret VALUE."""
    call = _call_context(ctx)

    def action(contract: DaoContract) -> Dict[str, Any]:
        contract.reveal_value(call, value)
        return {"account": call.caller, "value": value}

    _run(ctx, "Value revealed", action)


@cli.command("set-reveal-height")
@click.argument("height", type=click.IntRange(min=0))
@click.pass_context
def set_reveal_height(ctx: click.Context, height: int) -> None:
    """Set the block height at which reveals open (contract owner only)."""
    call = _call_context(ctx)

    def action(contract: DaoContract) -> Dict[str, Any]:
        contract.set_reveal_block_height(call, height)
        return {"reveal_block_height": height}

    _run(ctx, "Reveal height", action)


@cli.command("random-value")
@click.pass_context
def random_value(ctx: click.Context) -> None:
    """Show the shared random value combined from all reveals."""
    _run(
        ctx,
        "Beacon",
        lambda c: {
            "random_value": c.random_value(),
            "reveal_block_height": c.reveal_block_height(),
        },
    )


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
