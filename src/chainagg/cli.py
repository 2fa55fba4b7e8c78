"""Command-line interface for the chain aggregation engine."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from chainagg.core.fixed_point import to_decimal

app = typer.Typer(
    name="chainagg",
    help="Chain aggregation engine - replay protocol events into time series",
    add_completion=False,
)

console = Console()

# Sub-commands
db_app = typer.Typer(help="Database commands")
config_app = typer.Typer(help="Configuration commands")

app.add_typer(db_app, name="db")
app.add_typer(config_app, name="config")


def _fmt(value: int) -> str:
    """Render an 18-decimal fixed-point integer."""
    return f"{to_decimal(value):,.6f}"


# =============================================================================
# Database Commands
# =============================================================================


@db_app.command("init")
def db_init():
    """Create all tables."""
    from chainagg.data.database import check_connection, init_db

    if not check_connection():
        console.print("[red]Cannot connect to the database[/red]")
        raise typer.Exit(1)

    init_db()
    console.print("[green]✓ Database tables created[/green]")


# =============================================================================
# Replay Commands
# =============================================================================


@app.command("replay")
def replay(
    events: Path = typer.Argument(..., help="JSON lines file of ordered events"),
    state: Optional[Path] = typer.Option(
        None, "--state", help="YAML file with the contract state served to reads"
    ),
    memory: bool = typer.Option(
        False, "--memory", help="Replay into memory instead of the database"
    ),
):
    """Replay events through the aggregation handlers."""
    from chainagg.chain.reads import StaticChainReader
    from chainagg.config.settings import get_settings
    from chainagg.context import IndexerContext
    from chainagg.core.errors import AggregationError
    from chainagg.core.types import Candle, RollingAverage, SwapRecord
    from chainagg.indexer.processor import EventProcessor, read_events

    settings = get_settings()
    reader = StaticChainReader.from_yaml(state) if state else StaticChainReader()

    console.print(f"[bold]Replaying {events}...[/bold]")

    def _replay(store) -> None:
        processor = EventProcessor(IndexerContext.from_settings(settings, store, reader))
        try:
            summary = processor.replay(read_events(events))
        except (AggregationError, ValueError) as e:
            console.print(f"[red]Replay stopped: {e}[/red]")
            raise typer.Exit(1)

        table = Table(title="Replay Summary")
        table.add_column("Event kind", style="cyan")
        table.add_column("Count", justify="right")
        for kind, count in sorted(summary.by_kind.items()):
            table.add_row(kind, str(count))
        console.print(table)

        console.print(f"  Events:          {summary.processed}")
        console.print(f"  Closed candles:  {store.count(Candle)}")
        console.print(f"  Rolling series:  {store.count(RollingAverage)}")
        console.print(f"  Swaps:           {store.count(SwapRecord)}")

    if memory:
        from chainagg.store.memory import MemoryStore

        _replay(MemoryStore())
    else:
        from chainagg.data.database import get_session, init_db
        from chainagg.data.store import SqlEntityStore

        init_db()
        with get_session() as session:
            _replay(SqlEntityStore(session))

    console.print("[green]✓ Replay complete[/green]")


# =============================================================================
# Query Commands
# =============================================================================


@app.command("candles")
def candles(
    instrument: str = typer.Argument(..., help="Token address"),
    resolution: int = typer.Option(60, "--resolution", "-r", help="Minutes"),
    limit: int = typer.Option(20, "--limit", "-n", help="Most recent candles"),
):
    """Show closed candles of a token."""
    from chainagg.data.repository import CandleRepository

    instrument = instrument.lower()
    rows = CandleRepository().get_candles(instrument, resolution, limit=limit)
    if not rows:
        console.print(f"[yellow]No candles for {instrument} at {resolution}m[/yellow]")
        return

    table = Table(title=f"{instrument} {resolution}m")
    table.add_column("Time", style="cyan")
    for col in ("Open", "High", "Low", "Close", "Volume", "Oracle close"):
        table.add_column(col, justify="right")

    for c in rows:
        table.add_row(
            str(c.timestamp),
            _fmt(c.open),
            _fmt(c.high),
            _fmt(c.low),
            _fmt(c.close),
            _fmt(c.volume),
            _fmt(c.close_oracle),
        )
    console.print(table)


@app.command("averages")
def averages(token: str = typer.Argument(..., help="Token address")):
    """Show the 30-day rolling averages of a token."""
    from chainagg.data.repository import SeriesRepository

    token = token.lower()
    rows = SeriesRepository().get_averages(token)
    if not rows:
        console.print(f"[yellow]No rolling averages for {token}[/yellow]")
        return

    table = Table(title=f"Rolling averages of {token}")
    table.add_column("Metric", style="cyan")
    table.add_column("Mean", justify="right")
    table.add_column("Buckets", justify="right")
    for avg in rows:
        table.add_row(avg.metric, _fmt(avg.value), str(avg.index))
    console.print(table)


@app.command("history")
def history(
    series: str = typer.Argument(
        ...,
        help="reserve_pool_usd, total_value_minted_usd or total_value_locked_usd",
    ),
):
    """Show a protocol-wide daily history series."""
    from chainagg.core.types import DailySeries
    from chainagg.data.repository import SeriesRepository

    try:
        series = DailySeries(series).value
    except ValueError:
        console.print(f"[red]Unknown series '{series}'[/red]")
        raise typer.Exit(1)

    rows = SeriesRepository().get_daily(series)
    if not rows:
        console.print(f"[yellow]No history for {series}[/yellow]")
        return

    table = Table(title=series)
    table.add_column("Day", justify="right")
    table.add_column("Start", style="cyan")
    table.add_column("Value", justify="right")
    for chunk in rows:
        table.add_row(str(chunk.index), str(chunk.timestamp), _fmt(chunk.value))
    console.print(table)


# =============================================================================
# Config Commands
# =============================================================================


@config_app.command("show")
def config_show(section: str = typer.Argument("all", help="Config section to show")):
    """Show configuration values."""
    from chainagg.config.settings import get_settings

    settings = get_settings()

    if section in ("all", "database"):
        console.print("[bold]Database:[/bold]")
        if settings.database.url:
            console.print(f"  URL:  {settings.database.url}")
        else:
            console.print(f"  Host: {settings.database.host}")
            console.print(f"  Port: {settings.database.port}")
            console.print(f"  Name: {settings.database.name}")

    if section in ("all", "aggregation"):
        agg = settings.aggregation
        console.print("[bold]Aggregation:[/bold]")
        console.print(f"  Bucket span:   {agg.bucket_span_seconds}s")
        console.print(f"  Window:        {agg.window_buckets} buckets")
        console.print(
            f"  Resolutions:   {', '.join(str(r) for r in agg.candle_resolutions_minutes)}"
        )
        console.print(f"  Daily chunk:   {agg.daily_chunk_seconds}s")
        console.print(f"  Volume window: {agg.volume_window_seconds}s")

    if section in ("all", "protocol"):
        protocol = settings.protocol
        console.print("[bold]Protocol defaults:[/bold]")
        console.print(f"  Stable coin:   {protocol.stable_coin}")
        console.print(f"  Gov token:     {protocol.gov_token}")
        console.print(f"  Price feed:    {protocol.price_feed}")
        console.print(f"  Storage pool:  {protocol.storage_pool}")
        console.print(f"  Reserve pool:  {protocol.reserve_pool}")
        console.print(f"  Staking ops:   {protocol.staking_ops}")
        console.print(f"  Token manager: {protocol.token_manager}")


# =============================================================================
# Main Entry Point
# =============================================================================


@app.command()
def version():
    """Show version information."""
    from chainagg import __version__

    console.print(f"chainagg v{__version__}")


@app.callback()
def main():
    """
    Chain aggregation engine

    Turns ordered protocol events into rolling averages, candles and history.
    """
    pass


def cli():
    """Entry point for the CLI."""
    from chainagg.config.settings import get_settings

    get_settings().setup_logging()
    app()


if __name__ == "__main__":
    cli()
