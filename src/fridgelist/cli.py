"""Command-line interface for fridgelist."""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer

from fridgelist.config import get_settings
from fridgelist.db.cache_store import LocalCacheStore
from fridgelist.diagnostics import run_diagnostics
from fridgelist.engine import ListState, ReconciliationEngine
from fridgelist.integrations.fridge_api import FridgeApiClient
from fridgelist.logging_utils import configure_logging
from fridgelist.results import Result

app = typer.Typer(help="Offline-first shopping list for the fridge inventory service.")

URL_OPTION = typer.Option(None, "--url", help="Fridge API base URL (overrides FRIDGELIST_API_URL).")
KEY_OPTION = typer.Option(None, "--api-key", help="API key (overrides FRIDGELIST_API_KEY).")
DB_OPTION = typer.Option(None, "--db", help="SQLite cache path (overrides FRIDGELIST_DATABASE_PATH).")
JSON_OPTION = typer.Option(False, "--json", help="Print the list as JSON.")


@contextmanager
def _session(
    url: Optional[str],
    api_key: Optional[str],
    db: Optional[Path],
) -> Iterator[tuple[ReconciliationEngine, FridgeApiClient, LocalCacheStore]]:
    settings = get_settings()
    gateway_config = settings.gateway_config(base_url=url, api_key=api_key)
    configure_logging(settings.log_level, settings.log_format, [gateway_config.api_key])

    gateway = FridgeApiClient(gateway_config)
    cache = LocalCacheStore(db or settings.database_path)
    engine = ReconciliationEngine(gateway, cache)
    try:
        yield engine, gateway, cache
    finally:
        engine.close()
        cache.close()


def _fail(result: Result) -> None:
    typer.secho(f"Error: {result.error}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _format_quantity(value: float) -> str:
    return f"{value:g}"


def _render(state: ListState, as_json: bool) -> None:
    if as_json:
        payload = {
            "items": [item.to_wire() for item in state.items],
            "count": len(state.items),
            "total_estime": round(state.total_estimate, 2),
            "purchased": state.purchased_count,
            "remaining": state.remaining_count,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if not state.items:
        typer.echo("The shopping list is empty.")
    for item in state.items:
        mark = "x" if item.purchased else " "
        line = (
            f"[{mark}] #{item.id} {item.name}: "
            f"{_format_quantity(item.remaining_quantity)} {item.unit}".rstrip()
        )
        if item.purchased or item.purchased_quantity != item.remaining_quantity:
            line += f" (bought {_format_quantity(item.purchased_quantity)})"
        if item.unit_price > 0:
            line += f" @ {item.unit_price:.2f}"
        typer.echo(line)
    typer.echo(
        f"{state.purchased_count} purchased · {state.remaining_count} remaining · "
        f"estimate {state.total_estimate:.2f}"
    )


def _report(state: ListState) -> None:
    if state.success_message:
        typer.secho(state.success_message, fg=typer.colors.GREEN)


def _load_local(engine: ReconciliationEngine) -> None:
    loaded = engine.load_cached()
    if not loaded.ok:
        _fail(loaded)


@app.command()
def health(url: Optional[str] = URL_OPTION, api_key: Optional[str] = KEY_OPTION) -> None:
    """Check that the fridge API is reachable."""

    with _session(url, api_key, None) as (engine, _, _):
        result = engine.check_health()
        if not result.ok:
            _fail(result)
        typer.echo("Fridge API is reachable.")


@app.command("list")
def list_items(
    url: Optional[str] = URL_OPTION,
    api_key: Optional[str] = KEY_OPTION,
    db: Optional[Path] = DB_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Show the list, from the local cache when available."""

    with _session(url, api_key, db) as (engine, _, _):
        result = engine.get_list()
        if not result.ok:
            _fail(result)
        _render(engine.state, as_json)


@app.command()
def refresh(
    url: Optional[str] = URL_OPTION,
    api_key: Optional[str] = KEY_OPTION,
    db: Optional[Path] = DB_OPTION,
    as_json: bool = JSON_OPTION,
    fallback_to_cache: bool = typer.Option(
        False,
        "--fallback-to-cache",
        help="Show the cached list when the server cannot be reached.",
    ),
) -> None:
    """Download the list from the server and overwrite the local cache."""

    with _session(url, api_key, db) as (engine, _, cache):
        result = engine.fetch_list_from_server()
        if not result.ok:
            has_cache = cache.exists()
            if not (fallback_to_cache and has_cache.ok and has_cache.unwrap()):
                _fail(result)
            typer.secho(
                f"Warning: {result.error}. Showing the cached list.",
                fg=typer.colors.YELLOW,
                err=True,
            )
            _load_local(engine)
        else:
            _report(engine.state)
        _render(engine.state, as_json)


@app.command()
def toggle(
    item_id: int = typer.Argument(..., help="Item id to mark bought or not bought."),
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Toggle the purchased flag of an item."""

    with _session(None, None, db) as (engine, _, _):
        _load_local(engine)
        result = engine.toggle_purchased(item_id)
        if not result.ok:
            _fail(result)
        item = result.unwrap()
        state = "purchased" if item.purchased else "not purchased"
        typer.echo(f"{item.name} marked {state} ({_format_quantity(item.purchased_quantity)} {item.unit}).")


@app.command()
def quantity(
    item_id: int = typer.Argument(..., help="Item id."),
    amount: float = typer.Argument(..., help="Quantity bought; bounded by what remains."),
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Record the bought quantity of an item."""

    with _session(None, None, db) as (engine, _, _):
        _load_local(engine)
        result = engine.change_quantity(item_id, amount)
        if not result.ok:
            _fail(result)
        item = result.unwrap()
        typer.echo(
            f"{item.name}: bought {_format_quantity(item.purchased_quantity)} of "
            f"{_format_quantity(item.remaining_quantity)} {item.unit}".rstrip()
        )


@app.command()
def sync(
    url: Optional[str] = URL_OPTION,
    api_key: Optional[str] = KEY_OPTION,
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Push purchased items to the server and drop them locally."""

    with _session(url, api_key, db) as (engine, _, _):
        _load_local(engine)
        result = engine.sync()
        if not result.ok:
            _fail(result)
        _report(engine.state)


@app.command()
def delete(
    item_id: int = typer.Argument(..., help="Item id to remove from the remote list."),
    url: Optional[str] = URL_OPTION,
    api_key: Optional[str] = KEY_OPTION,
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Delete an item on the server."""

    with _session(url, api_key, db) as (engine, _, _):
        _load_local(engine)
        result = engine.delete_item(item_id)
        if not result.ok:
            _fail(result)
        _report(engine.state)


@app.command()
def clear(db: Optional[Path] = DB_OPTION) -> None:
    """Empty the local cache."""

    with _session(None, None, db) as (engine, _, _):
        engine.clear()
        _report(engine.state)


@app.command()
def doctor(
    url: Optional[str] = URL_OPTION,
    api_key: Optional[str] = KEY_OPTION,
    db: Optional[Path] = DB_OPTION,
) -> None:
    """Inspect configuration, the local cache and the remote API."""

    with _session(url, api_key, db) as (_, gateway, cache):
        exit_code, report = run_diagnostics(gateway, cache)
    typer.echo(report)
    raise typer.Exit(code=exit_code)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m fridgelist`."""
    app(prog_name="fridgelist", args=argv)


if __name__ == "__main__":
    main()
