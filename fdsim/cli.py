"""
Command-Line Interface for fdsim.

Purpose
-------
Provides a CLI for playing and analyzing runs of the financial decision
simulator without writing Python code.

Commands
--------
- run: Headless run with a built-in policy, optionally saved to JSON
- play: Interactive run, choosing cards year by year
- cards: Show the card catalog
- batch: Run many seeds and show the distribution of outcomes
- report: Summarize a saved run
- config: Validate and create run configuration files

Example Usage
-------------
    # Ten-year headless run
    $ fdsim run --seed RUN-001 --years 10 --policy recommended

    # Save a run and report on it
    $ fdsim run -s RUN-001 -o run-001.json
    $ fdsim report -r runs/run-001.json --format detailed

    # Play interactively from a 100k starter
    $ fdsim play --mode starter_100k

    # Show version
    $ fdsim --version
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import pydantic
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import AppSettings, RunConfig
from .exceptions import FdsimError
from .modes import list_modes
from .policies import POLICIES, get_policy, recovery_policy
from .utils import format_money, format_pct

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


def _history_table(history, title: str = "Run History") -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Year", justify="right")
    table.add_column("Cards", style="cyan")
    table.add_column("Event", style="magenta")
    table.add_column("Cash", justify="right")
    table.add_column("Invested", justify="right")
    table.add_column("Debt", justify="right")
    table.add_column("Net Worth", style="green", justify="right")
    table.add_column("Stress", justify="right")
    table.add_column("Burnout", justify="right")

    for snap in history:
        played = ", ".join(r.card_id for r in snap.card_results if r.ok) or "-"
        table.add_row(
            str(snap.year),
            played,
            snap.event.name if snap.event else "-",
            format_money(snap.cash),
            format_money(snap.invested),
            format_money(snap.debt),
            format_money(snap.net_worth),
            str(snap.stress),
            str(snap.burnout),
        )
    return table


def _summary_rows(seed, ending: Optional[str], summary: dict) -> List[tuple]:
    from .simulation import ENDING_MESSAGES

    rows = [
        ("Seed", str(seed)),
        ("Years Played", str(summary["years_played"])),
        ("Ending", ENDING_MESSAGES.get(ending, ending) if ending else "Completed"),
    ]
    if summary["years_played"]:
        rows += [
            ("Final Net Worth", format_money(summary["final_net_worth"])),
            ("Peak Net Worth", format_money(summary["peak_net_worth"])),
            ("Max Drawdown", format_pct(summary["max_drawdown"])),
            ("Mean Market Return", format_pct(summary["mean_market_return"])),
        ]
    return rows


def _print_summary(ctx: click.Context, seed, ending: Optional[str], summary: dict) -> None:
    console = ctx.obj["console"]
    rows = _summary_rows(seed, ending, summary)

    if ctx.obj["quiet"]:
        for name, value in rows:
            click.echo(f"{name}: {value}")
        return

    table = Table(title="Run Summary", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)


@click.group()
@click.version_option(version=__version__, prog_name="fdsim")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    fdsim - Financial Decision Simulator.

    A seeded, card-based life-finance game: each year play up to two
    cards, survive one event, and watch cashflow, debt, markets and
    burnout play out.

    Use 'fdsim COMMAND --help' for command-specific help.
    """
    settings = AppSettings()
    _setup_logging(settings.effective_log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


@main.command()
@click.option("--seed", "-s", type=str, default=None, help="Run seed (default: FDSIM_DEFAULT_SEED)")
@click.option("--years", "-y", type=int, default=None, help="Horizon in years")
@click.option("--mode", "-m", type=click.Choice(list_modes()), default=None, help="Starting mode")
@click.option("--policy", "-p", type=click.Choice(list(POLICIES)), default=None, help="Card choice policy")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Run configuration file (JSON); explicit options win"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Save the run to this JSON file (relative paths land in FDSIM_OUTPUT_DIR)"
)
@click.option("--history/--no-history", default=True, help="Show the year-by-year table")
@click.pass_context
def run(
    ctx: click.Context,
    seed: Optional[str],
    years: Optional[int],
    mode: Optional[str],
    policy: Optional[str],
    config: Optional[Path],
    output: Optional[Path],
    history: bool,
) -> None:
    """
    Play a whole run with a built-in policy.

    Example:
        fdsim run -s RUN-001 -y 15 -m life -p recommended
    """
    settings: AppSettings = ctx.obj["settings"]
    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    from .analytics import summarize_history
    from .serialization import save_run
    from .simulation import run_simulation

    try:
        base = RunConfig.model_validate_json(config.read_text()) if config else RunConfig(
            seed=settings.default_seed, years=settings.default_years,
        )
        explicit = {
            k: v for k, v in {"seed": seed, "years": years, "mode": mode, "policy": policy}.items()
            if v is not None
        }
        cfg = RunConfig.model_validate({**base.model_dump(), **explicit})
    except pydantic.ValidationError as e:
        _fail(f"Invalid run configuration: {e}")
    except OSError as e:
        _fail(f"Error reading config: {e}")

    logger.debug("Run config: %s", cfg.model_dump())

    try:
        result = run_simulation(
            seed=cfg.seed,
            years=cfg.years,
            initial_state=cfg.resolved_overrides(),
            policy=get_policy(cfg.policy),
            hand_options=cfg.hand,
        )
    except FdsimError as e:
        _fail(f"Error during run: {e}")

    if history and not quiet:
        console.print(_history_table(result.history, title=f"Run {cfg.seed} ({cfg.mode}, {cfg.policy})"))

    _print_summary(ctx, result.seed, result.ending, summarize_history(result.history))

    if output:
        if not output.is_absolute():
            output = settings.output_dir / output
        save_run(result, output)
        if not quiet:
            click.echo(f"Run saved to {output}")


def _parse_choice(raw: str, hand) -> Optional[List[str]]:
    """Turn '1,3' (1-based hand positions) into card ids; None if invalid."""
    raw = raw.strip()
    if not raw:
        return []
    ids = []
    for part in raw.replace(" ", ",").split(","):
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= len(hand):
            return None
        card_id = hand[int(part) - 1].id
        if card_id not in ids:
            ids.append(card_id)
    return ids if len(ids) <= 2 else None


@main.command()
@click.option("--seed", "-s", type=str, default=None, help="Run seed (default: FDSIM_DEFAULT_SEED)")
@click.option("--years", "-y", type=int, default=None, help="Horizon in years")
@click.option("--mode", "-m", type=click.Choice(list_modes()), default="life", help="Starting mode")
@click.pass_context
def play(ctx: click.Context, seed: Optional[str], years: Optional[int], mode: str) -> None:
    """
    Play a run interactively.

    Each year, pick up to two cards by their numbers (e.g. "1,3").
    Enter "s" to skip the year (rest plus one card), "q" to quit.

    Example:
        fdsim play -s RUN-001 -m starter_10k
    """
    settings: AppSettings = ctx.obj["settings"]
    console = ctx.obj["console"]

    from .analytics import summarize_history
    from .simulation import create_game

    try:
        cfg = RunConfig(
            seed=seed or settings.default_seed,
            years=years or settings.default_years,
            mode=mode,
        )
    except pydantic.ValidationError as e:
        _fail(f"Invalid run configuration: {e}")
    game = create_game(seed=cfg.seed, years=cfg.years, initial_state=cfg.resolved_overrides())

    while not game.is_over:
        s = game.state
        console.print(Panel(
            f"Cash {format_money(s.cash)}   Invested {format_money(s.invested)}   "
            f"Debt {format_money(s.debt)}\n"
            f"Income {format_money(s.income)}/yr   Expenses {format_money(s.expenses)}/yr\n"
            f"Stress {s.stress:.0f}/100   Burnout {s.burnout:.0f}/100",
            title=f"Year {s.year} of {game.years}",
        ))

        hand = game.get_hand()
        table = Table(show_header=True)
        table.add_column("#", justify="right")
        table.add_column("Card", style="cyan")
        table.add_column("Rarity")
        table.add_column("Description")
        for i, card in enumerate(hand, start=1):
            table.add_row(str(i), card.name, card.rarity, card.desc)
        console.print(table)

        raw = click.prompt("Pick up to 2 cards (s = skip year, q = quit)", default="", show_default=False)
        if raw.strip().lower() == "q":
            break
        if raw.strip().lower() == "s":
            chosen = recovery_policy(s, hand)
        else:
            chosen = _parse_choice(raw, hand)
            if chosen is None:
                click.echo("Invalid choice, enter up to two card numbers.", err=True)
                continue

        snap = game.play_year(chosen)
        event_text = f"{snap.event.name}: {snap.event.text}" if snap.event else "No event this year."
        console.print(f"[bold]Year {snap.year} completed.[/bold] {event_text}")
        for entry in snap.log:
            console.print(f"  [cyan]{entry['title']}[/cyan]: {entry['text']}")

    _print_summary(ctx, game.seed, game.ending, summarize_history(game.history))


@main.command()
@click.pass_context
def cards(ctx: click.Context) -> None:
    """
    Show the card catalog.

    Example:
        fdsim cards
    """
    console = ctx.obj["console"]

    from .cards import CARDS

    if ctx.obj["quiet"]:
        for card in CARDS:
            click.echo(f"{card.id}: {card.name} ({card.rarity} {card.type})")
        return

    table = Table(title=f"Card Catalog ({len(CARDS)} cards)", show_header=True)
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Rarity")
    table.add_column("Limits")
    table.add_column("Description")
    for card in CARDS:
        limits = "exhaust" if card.exhaust else (
            f"cooldown {card.cooldown_years}y" if card.cooldown_years else "-"
        )
        table.add_row(card.id, card.name, card.type, card.rarity, limits, card.desc)
    console.print(table)


@main.command()
@click.option("--runs", "-n", type=click.IntRange(min=1), default=100, help="Number of seeds (default: 100)")
@click.option("--years", "-y", type=int, default=None, help="Horizon in years")
@click.option("--mode", "-m", type=click.Choice(list_modes()), default="life", help="Starting mode")
@click.option("--policy", "-p", type=click.Choice(list(POLICIES)), default="first", help="Card choice policy")
@click.option("--seed-prefix", type=str, default="batch", help="Seeds are PREFIX-0 .. PREFIX-(n-1)")
@click.pass_context
def batch(
    ctx: click.Context,
    runs: int,
    years: Optional[int],
    mode: str,
    policy: str,
    seed_prefix: str,
) -> None:
    """
    Run many seeds and show the distribution of outcomes.

    Example:
        fdsim batch -n 500 -y 15 -m life -p recommended
    """
    settings: AppSettings = ctx.obj["settings"]
    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    from .analytics import batch_statistics, run_batch

    horizon = years or settings.default_years
    if not quiet:
        console.print(f"[bold]Running {runs:,} runs over {horizon} years...[/bold]")

    try:
        frame = run_batch(
            [f"{seed_prefix}-{i}" for i in range(runs)],
            years=horizon,
            mode=mode,
            policy=policy,
        )
    except FdsimError as e:
        _fail(f"Error during batch: {e}")
    stats = batch_statistics(frame)

    if quiet:
        click.echo(f"Median Final Net Worth: {format_money(stats['median'])}")
        for ending, rate in stats["ending_rates"].items():
            click.echo(f"{ending}: {format_pct(rate)}")
        return

    table = Table(title="Batch Results", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Runs", f"{stats['runs']:,}")
    table.add_row("Mode / Policy", f"{mode} / {policy}")
    table.add_row("", "")
    table.add_row("Mean Final Net Worth", format_money(stats["mean"]))
    table.add_row("Median Final Net Worth", format_money(stats["median"]))
    table.add_row("Std Dev", format_money(stats["std"]))
    table.add_row("10th Percentile", format_money(stats["p10"]))
    table.add_row("90th Percentile", format_money(stats["p90"]))
    table.add_row("", "")
    for ending, rate in stats["ending_rates"].items():
        table.add_row(f"Ending: {ending}", format_pct(rate))
    console.print(table)


@main.command()
@click.option(
    "--result", "-r",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to a saved run (JSON)"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["summary", "detailed"]),
    default="summary",
    help="Output format (default: summary)"
)
@click.pass_context
def report(ctx: click.Context, result: Path, format: str) -> None:
    """
    Summarize a saved run.

    Example:
        fdsim report -r runs/run-001.json --format detailed
    """
    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    from .analytics import summarize_history
    from .serialization import load_run

    try:
        run_result = load_run(result)
    except FdsimError as e:
        _fail(f"Error loading run: {e}")

    summary = summarize_history(run_result.history)
    _print_summary(ctx, run_result.seed, run_result.ending, summary)

    if format == "detailed":
        if quiet:
            click.echo(f"Events: {summary['event_counts']}")
            click.echo(f"Cards: {summary['card_play_counts']}")
            return

        console.print(_history_table(run_result.history))

        counts = Table(title="Events and Cards", show_header=True)
        counts.add_column("Kind", style="cyan")
        counts.add_column("Id")
        counts.add_column("Count", justify="right")
        for event_id, n in summary["event_counts"].items():
            counts.add_row("event", event_id, str(n))
        for card_id, n in summary["card_play_counts"].items():
            counts.add_row("card", card_id, str(n))
        console.print(counts)


@main.group()
def config() -> None:
    """
    Configuration management commands.

    Validate and create run configuration files.
    """
    pass


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, config_file: Path) -> None:
    """
    Validate a run configuration file.

    Example:
        fdsim config validate run.json
    """
    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    try:
        cfg = RunConfig.model_validate_json(config_file.read_text())
        overrides = cfg.resolved_overrides()
    except (pydantic.ValidationError, FdsimError) as e:
        _fail(f"Configuration validation failed: {e}")

    if quiet:
        click.echo("Configuration is valid")
        return

    info = (
        f"[bold]Run Configuration Valid[/bold]\n\n"
        f"[cyan]Seed:[/cyan] {cfg.seed}\n"
        f"[cyan]Years:[/cyan] {cfg.years}\n"
        f"[cyan]Mode:[/cyan] {cfg.mode}\n"
        f"[cyan]Policy:[/cyan] {cfg.policy}\n\n"
        f"[cyan]Initial state:[/cyan]\n"
    )
    for key, value in overrides.explicit().items():
        info += f"  - {key}: {value}\n"
    console.print(Panel(info, title="Configuration Summary", border_style="green"))


@config.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.option("--mode", "-m", type=click.Choice(list_modes()), default="life", help="Starting mode")
@click.option("--policy", "-p", type=click.Choice(list(POLICIES)), default="first", help="Card choice policy")
@click.pass_context
def config_create(ctx: click.Context, output_file: Path, mode: str, policy: str) -> None:
    """
    Create a run configuration file to customize.

    Example:
        fdsim config create my_run.json --mode starter_10k
    """
    settings: AppSettings = ctx.obj["settings"]
    cfg = RunConfig(
        seed=settings.default_seed,
        years=settings.default_years,
        mode=mode,
        policy=policy,
    )

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(cfg.model_dump_json(indent=2))

    if not ctx.obj["quiet"]:
        ctx.obj["console"].print(f"[green]Created configuration file: {output_file}[/green]")


if __name__ == "__main__":
    main()
