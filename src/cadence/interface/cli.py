"""Cadence CLI — review scheduling commands and config subgroup."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer

from cadence.application.config import AppConfig, resolve_config
from cadence.domain.exceptions import CadenceError
from cadence.domain.models import ProgressKey, ProgressRecord, ReviewResult

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition review scheduling.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def _log_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    return resolve_config(overrides)


def _key(config: AppConfig, item: str, user: str | None, index: int) -> ProgressKey:
    return ProgressKey(user or config.default_user, item, index)


def _run(coro: Awaitable[T]) -> T:
    """Run a service call, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except CadenceError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e


def _service(config: AppConfig):
    from cadence.application.factory import get_review_service

    return get_review_service(config)


def _summary(record: ProgressRecord, trend: float) -> dict[str, Any]:
    from cadence.application.display import describe_state
    from cadence.application.elo import get_elo_category

    category = get_elo_category(record.elo.rating)
    return {
        "item": record.item_id,
        "card_index": record.card_index,
        "user": record.user_id,
        **describe_state(record.state, record.algorithm),
        "study_sessions": record.study_sessions,
        "elo": record.elo.rating,
        "elo_level": category.level,
        "elo_trend": round(trend, 3),
    }


def _echo_summary(summary: dict[str, Any]) -> None:
    typer.echo(f"{summary['item']}[{summary['card_index']}] ({summary['algorithm']})")
    typer.echo(f"  Next review: {summary['interval']}  (due {summary['due_date']})")
    typer.echo(f"  Mastery: {summary['mastery']}  Sessions: {summary['study_sessions']}")
    typer.echo(f"  ELO: {summary['elo']:g} ({summary['elo_level']})")
    if "phase" in summary:
        typer.echo(
            f"  Phase: {summary['phase']}  Stability: {summary['stability']}"
            f"  Difficulty: {summary['difficulty']}"
        )
    if "leitner_box" in summary:
        typer.echo(f"  Leitner box: {summary['leitner_box']}")


UserOption = Annotated[str | None, typer.Option("--user", "-u", help="Learner ID.")]
IndexOption = Annotated[
    int, typer.Option("--index", "-i", min=0, help="Card index within the item.")
]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    # -v on the command line wins over the configured level
    if not verbose:
        verbose = resolve_config().verbose
    ctx.obj["verbose"] = verbose
    logging.getLogger().setLevel(_log_level(verbose))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    item: Annotated[str, typer.Argument(help="Item (flashcard set or quiz) ID.")],
    user: UserOption = None,
    index: IndexOption = 0,
    algorithm: Annotated[
        str | None, typer.Option("--algorithm", "-a", help="FSRS, SM-2 or Leitner.")
    ] = None,
):
    """Start scheduling an item. Existing items are left untouched."""
    config = _resolve_with_overrides()
    service = _service(config)
    record = _run(service.start_tracking(_key(config, item, user, index), algorithm))
    _echo_summary(_summary(record, service.elo_trend(record)))


@app.command()
def review(
    item: Annotated[str, typer.Argument(help="Item ID.")],
    confidence: Annotated[
        int, typer.Option("--confidence", "-c", min=1, max=5, help="Confidence 1-5.")
    ],
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ] = True,
    time_spent: Annotated[
        float, typer.Option("--time-spent", "-t", min=0, help="Seconds spent answering.")
    ] = 0.0,
    user: UserOption = None,
    index: IndexOption = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Record[/bold green] a review and reschedule the item."""
    config = _resolve_with_overrides()
    service = _service(config)
    result = ReviewResult(confidence=confidence, correct=correct, time_spent=time_spent)
    record = _run(service.record_review(_key(config, item, user, index), result))

    summary = _summary(record, service.elo_trend(record))
    if json_output:
        typer.echo(json.dumps(summary, indent=2))
    else:
        _echo_summary(summary)


@app.command()
def show(
    item: Annotated[str, typer.Argument(help="Item ID.")],
    user: UserOption = None,
    index: IndexOption = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show scheduling state for an item."""
    from cadence.infrastructure.serialization import record_to_dict

    config = _resolve_with_overrides()
    service = _service(config)
    record = _run(service.get_progress(_key(config, item, user, index)))

    summary = _summary(record, service.elo_trend(record))
    if json_output:
        typer.echo(json.dumps({"summary": summary, "record": record_to_dict(record)}, indent=2))
    else:
        _echo_summary(summary)


@app.command()
def due(
    user: UserOption = None,
    limit: Annotated[int | None, typer.Option(min=1, help="Maximum items to list.")] = None,
):
    """List items that are due now, longest overdue first."""
    from cadence.application.display import format_mastery_level

    config = _resolve_with_overrides()
    service = _service(config)
    records = _run(service.get_due(user or config.default_user, limit=limit))

    if not records:
        typer.secho("Nothing due.", fg="green")
        return

    for record in records:
        typer.echo(
            f"{record.item_id}[{record.card_index}]  due {record.due_date.isoformat()}"
            f"  mastery {format_mastery_level(record.state)}"
        )
    typer.echo(f"Due: {len(records)}")


@app.command("next")
def next_item(user: UserOption = None):
    """Show the item to review next (or the next one to become due)."""
    config = _resolve_with_overrides()
    service = _service(config)
    record = _run(service.next_review(user or config.default_user))

    if record is None:
        typer.secho("No items scheduled.", fg="yellow")
        raise typer.Exit(1)
    _echo_summary(_summary(record, service.elo_trend(record)))


@app.command()
def switch(
    item: Annotated[str, typer.Argument(help="Item ID.")],
    algorithm: Annotated[str, typer.Argument(help="FSRS, SM-2 or Leitner.")],
    user: UserOption = None,
    index: IndexOption = 0,
):
    """Change the algorithm driving an item. Existing state is preserved."""
    config = _resolve_with_overrides()
    service = _service(config)
    record = _run(service.switch_algorithm(_key(config, item, user, index), algorithm))
    typer.secho(f"{item}[{index}] now uses {record.algorithm.value}.", fg="green")


@app.command()
def elo(
    rating: Annotated[float, typer.Argument(min=0, max=3000, help="Current rating.")],
    confidence: Annotated[
        int, typer.Option("--confidence", "-c", min=1, max=5, help="Confidence 1-5.")
    ],
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ] = True,
    k_factor: Annotated[float | None, typer.Option(help="K-factor override.")] = None,
    dynamic: Annotated[
        bool, typer.Option("--dynamic/--fixed", help="Scale K by the current rating.")
    ] = False,
):
    """Compute an ELO update without touching any stored progress."""
    from cadence.application.elo import (
        calculate_dynamic_k_factor,
        get_elo_category,
        update_elo,
    )

    config = _resolve_with_overrides()
    k = k_factor if k_factor is not None else config.elo_k_factor
    if dynamic:
        k = calculate_dynamic_k_factor(rating, k)

    new_rating = update_elo(rating, confidence, correct, k)
    category = get_elo_category(new_rating)
    typer.echo(f"{rating:g} -> {new_rating} ({category.level})")


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("cadence.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {
        k: str(v) if isinstance(v, Path) else getattr(v, "value", v)
        for k, v in config.model_dump().items()
    }
    typer.echo(json.dumps(d, indent=2))
