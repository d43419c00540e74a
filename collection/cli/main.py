"""
collection - command-line driver for a capped collection registry.

State is kept in a JSON file between invocations (the registry's exported
state: durable fields plus current holders). Every command prints JSON to
stdout; registry errors print their structured form to stderr and exit 1.

Global options:
  --state-file PATH   State file (default: $COLLECTION_STATE_FILE or ./collection-state.json)
  --log-level TEXT    Root log level (default: WARNING)

Examples:
  collection init --name Genesis --symbol GEN --max-supply 100 \\
      --owner 0x… --royalty-receiver 0x… --royalty-bps 500 --base ipfs://X/
  collection issue --caller 0x… --to 0x…
  collection issue-batch --caller 0x… --to 0xA… --to 0xB… --to 0xC…
  collection uri 7
  collection quote 7 --price 1000
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import typer

from ..config import load_config
from ..errors import CollectionError
from ..notify import EventLog
from ..registry import CollectionRegistry

STATE_FILE_ENV = "COLLECTION_STATE_FILE"
CALLER_ENV = "COLLECTION_CALLER"
DEFAULT_STATE_FILE = Path("collection-state.json")

app = typer.Typer(
    name="collection",
    help="Issue and inspect tokens in a capped collection.",
    no_args_is_help=True,
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _state_path(ctx: typer.Context) -> Path:
    obj = ctx.obj or {}
    return Path(obj.get("state_file") or DEFAULT_STATE_FILE)


def _echo(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, sort_keys=True))


def _fail(payload: Dict[str, Any], code: int = 1) -> None:
    typer.echo(json.dumps(payload, sort_keys=True), err=True)
    raise typer.Exit(code=code)


def _load(ctx: typer.Context, events: Optional[EventLog] = None) -> CollectionRegistry:
    path = _state_path(ctx)
    if not path.exists():
        _fail({"reason": "no_state", "message": f"state file not found: {path}; run init first"})
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail({"reason": "bad_state", "message": f"state file is not JSON: {e}"})
    if not isinstance(data, dict):
        _fail({"reason": "bad_state", "message": f"state file must hold a JSON object, got {type(data).__name__}"})
    try:
        return CollectionRegistry.from_state(data, sink=events)
    except CollectionError as e:
        _fail(e.to_dict())
    except ValueError as e:
        _fail({"reason": "bad_state", "message": str(e)})
    raise AssertionError("unreachable")  # pragma: no cover


def _save(ctx: typer.Context, reg: CollectionRegistry) -> None:
    path = _state_path(ctx)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(reg.export_state(), indent=2), encoding="utf-8")


def _run(fn: Callable[[], Any]) -> Any:
    try:
        return fn()
    except CollectionError as e:
        _fail(e.to_dict())


def _mutate(ctx: typer.Context, fn: Callable[[CollectionRegistry], Any]) -> Dict[str, Any]:
    """Load, apply `fn`, persist on success; returns result plus emitted events."""
    events = EventLog()
    reg = _load(ctx, events)
    result = _run(lambda: fn(reg))
    _save(ctx, reg)
    return {
        "result": result,
        "events": [{"topic": e.topic, **e.to_payload()} for e in events.events],
    }


# ---------------------------------------------------------------------------
# Typer wiring
# ---------------------------------------------------------------------------


@app.callback()
def _configure(
    ctx: typer.Context,
    state_file: Optional[Path] = typer.Option(
        None,
        "--state-file",
        help="Registry state file (default: ./collection-state.json)",
        envvar=STATE_FILE_ENV,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Root log level"),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"state_file": state_file}


@app.command("init")
def init(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name"),
    symbol: Optional[str] = typer.Option(None, "--symbol"),
    max_supply: Optional[int] = typer.Option(None, "--max-supply"),
    owner: Optional[str] = typer.Option(None, "--owner"),
    royalty_receiver: Optional[str] = typer.Option(None, "--royalty-receiver"),
    royalty_bps: int = typer.Option(0, "--royalty-bps"),
    base: str = typer.Option("", "--base", help="Initial base locator"),
    config: Optional[Path] = typer.Option(
        None, "--config", help="JSON/YAML config file; overrides the flags above"
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file"),
) -> None:
    """Create a new collection and write its state file."""
    path = _state_path(ctx)
    if path.exists() and not force:
        _fail({"reason": "state_exists", "message": f"{path} exists; pass --force to overwrite"})
    try:
        if config is not None:
            reg = CollectionRegistry.from_config(load_config(str(config)))
        else:
            reg = CollectionRegistry.create(
                name=name,  # type: ignore[arg-type]
                symbol=symbol,  # type: ignore[arg-type]
                max_supply=max_supply,  # type: ignore[arg-type]
                base_locator=base,
                royalty_receiver=royalty_receiver,  # type: ignore[arg-type]
                royalty_bps=royalty_bps,
                owner=owner,  # type: ignore[arg-type]
            )
    except ValueError as e:
        _fail({"reason": "bad_config", "message": str(e)}, code=2)
    _save(ctx, reg)
    _echo(reg.export_state())


@app.command("show")
def show(ctx: typer.Context) -> None:
    """Print the collection state."""
    reg = _load(ctx)
    state = reg.export_state()
    state["issued"] = reg.issued
    state["remaining"] = reg.remaining_supply()
    _echo(state)


@app.command("issue")
def issue(
    ctx: typer.Context,
    caller: str = typer.Option(..., "--caller", envvar=CALLER_ENV),
    to: str = typer.Option(..., "--to", help="Recipient address"),
) -> None:
    """Issue the next token to one recipient."""
    out = _mutate(ctx, lambda reg: reg.issue_one(caller, to))
    _echo({"id": out["result"], "events": out["events"]})


@app.command("issue-batch")
def issue_batch(
    ctx: typer.Context,
    caller: str = typer.Option(..., "--caller", envvar=CALLER_ENV),
    to: Optional[List[str]] = typer.Option(None, "--to", help="Recipient address (repeatable, in order)"),
) -> None:
    """Issue consecutive tokens to the recipients, in the order given."""
    recipients = list(to or [])
    out = _mutate(ctx, lambda reg: reg.issue_batch(caller, recipients))
    last = out["result"]
    _echo({"first_id": last - len(recipients) + 1, "last_id": last, "events": out["events"]})


@app.command("exists")
def exists(ctx: typer.Context, token_id: int = typer.Argument(...)) -> None:
    reg = _load(ctx)
    _echo({"id": token_id, "exists": reg.exists(token_id)})


@app.command("uri")
def uri(ctx: typer.Context, token_id: int = typer.Argument(...)) -> None:
    """Print the metadata locator of a token."""
    reg = _load(ctx)
    _echo({"id": token_id, "uri": _run(lambda: reg.token_uri(token_id))})


@app.command("owner-of")
def owner_of(ctx: typer.Context, token_id: int = typer.Argument(...)) -> None:
    reg = _load(ctx)
    _echo({"id": token_id, "holder": _run(lambda: reg.owner_of(token_id))})


@app.command("quote")
def quote(
    ctx: typer.Context,
    token_id: int = typer.Argument(...),
    price: int = typer.Option(..., "--price", help="Hypothetical sale price (integer units)"),
) -> None:
    """Quote the royalty owed on a sale of the token."""
    reg = _load(ctx)
    receiver, amount = _run(lambda: reg.royalty_info(token_id, price))
    _echo({"id": token_id, "price": price, "receiver": receiver, "amount": amount})


@app.command("set-base")
def set_base(
    ctx: typer.Context,
    locator: str = typer.Argument(..., help="New base locator (may be empty)"),
    caller: str = typer.Option(..., "--caller", envvar=CALLER_ENV),
) -> None:
    out = _mutate(ctx, lambda reg: reg.set_base_locator(caller, locator))
    _echo({"base_locator": locator, "events": out["events"]})


@app.command("set-royalty")
def set_royalty(
    ctx: typer.Context,
    caller: str = typer.Option(..., "--caller", envvar=CALLER_ENV),
    receiver: str = typer.Option(..., "--receiver"),
    bps: int = typer.Option(..., "--bps"),
) -> None:
    out = _mutate(ctx, lambda reg: reg.set_royalty(caller, receiver, bps).to_dict())
    _echo({"royalty": out["result"]})


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
