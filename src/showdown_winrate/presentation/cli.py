import asyncio, logging
from datetime import date
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    Progress, BarColumn, TextColumn, TimeElapsedColumn,
    TimeRemainingColumn, MofNCompleteColumn, SpinnerColumn
)
from rich.table import Table

from ..adapters.json_export import JSONRowSink
from ..adapters.parquet_sink import ParquetMatchSink
from ..adapters.rpc_httpx import HttpxRPC
from ..application.block_resolver import BlockResolver
from ..application.dates import PRESETS, day_end_ts, day_start_ts, preset_range
from ..application.use_cases import run_winrate_query
from ..config import (
    DEFAULT_ATTEMPTS, DEFAULT_BATCH_SIZE, DEFAULT_CONTRACT_ADDRESS, DEFAULT_DELAY_MS,
    DEFAULT_RPC_URL, WinrateQuery,
)
from ..domain.aggregation import head_to_head
from ..domain.errors import WinrateError, user_message
from ..domain.models import MatchRecord, PlayerMatchView, WinrateReport

console = Console()

DATE = click.DateTime(formats=["%Y-%m-%d"])


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _as_date(v) -> Optional[date]:
    return v.date() if v is not None else None


def _stats_panel(report: WinrateReport) -> Panel:
    s = report.stats
    blocks = "no blocks in range" if report.empty_range else f"blocks {report.from_block:,}-{report.to_block:,}"
    body = (f"[green]wins[/]={s.wins}  [red]losses[/]={s.losses}  total={s.total}  "
            f"[bold]win rate[/]={s.winrate * 100:.2f}%\n"
            f"{blocks} • {len(report.matches)} decoded matches • {report.raw_logs} logs")
    return Panel(body, title=f"[bold]{report.player}[/]", expand=False)


def _player_table(view: tuple[PlayerMatchView, ...], player: str) -> Table:
    t = Table(title=f"Matches for {player} ({len(view)})")
    for col in ("Block", "Game #", "Result", "Opponent", "Started", "Reason", "Tx"):
        t.add_column(col, justify="right" if col in ("Block", "Game #") else "left")
    for v in view:
        r = v.record
        style = "green" if v.result == "W" else "red"
        t.add_row(str(r.block_number), str(r.game_number), f"[{style}]{v.result}[/]",
                  v.opponent, r.started_at, r.end_reason, r.tx_hash)
    return t


def _all_table(matches: tuple[MatchRecord, ...]) -> Table:
    t = Table(title=f"All decoded matches ({len(matches)})")
    for col in ("Block", "Game #", "Winner", "Winner classes", "Loser", "Loser classes", "Length", "Reason"):
        t.add_column(col)
    for r in matches:
        t.add_row(str(r.block_number), str(r.game_number), r.winning_player, r.winning_classes,
                  r.losing_player, r.losing_classes, r.game_length, r.end_reason)
    return t


def _h2h_table(view: tuple[PlayerMatchView, ...]) -> Table:
    t = Table(title="Head to head")
    for col in ("Opponent", "W", "L", "Games"):
        t.add_column(col)
    for tally in head_to_head(view):
        t.add_row(tally.opponent, str(tally.wins), str(tally.losses), str(tally.games))
    return t


@click.group()
@click.option("--log-level", default="WARNING", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def cli(log_level):
    """Showdown win/loss checker over on-chain GameResultEvent logs."""
    configure_logging(log_level)


@cli.command("winrate")
@click.option("--rpc", envvar="RPC_URL", default=DEFAULT_RPC_URL, show_default=True, help="RPC endpoint URL")
@click.option("--contract", envvar="CONTRACT_ADDRESS", default=DEFAULT_CONTRACT_ADDRESS, show_default=True,
              help="GameResultEvent emitter address")
@click.option("--player", required=True, help="Player name (case-insensitive)")
@click.option("--start", "start", type=DATE, default=None, help="First day, YYYY-MM-DD (local)")
@click.option("--end", "end", type=DATE, default=None, help="Last day, YYYY-MM-DD (local); empty = latest")
@click.option("--preset", type=click.Choice(PRESETS), default=None, help="Date range preset; overrides --start/--end")
@click.option("--batch-size", type=click.IntRange(1, 8), default=DEFAULT_BATCH_SIZE, show_default=True,
              help="Block spans per batched request")
@click.option("--delay-ms", type=click.IntRange(min=0), default=DEFAULT_DELAY_MS, show_default=True,
              help="Pause between batches")
@click.option("--attempts", type=click.IntRange(min=1), default=DEFAULT_ATTEMPTS, show_default=True,
              help="Tries per RPC call")
@click.option("--all/--player-only", "show_all", default=False, show_default=True,
              help="Also print every decoded match")
@click.option("--json-out", type=str, default="", help="Write the player's matches as JSON")
@click.option("--all-json-out", type=str, default="", help="Write all decoded matches as JSON")
@click.option("--parquet-out", type=str, default="", help="Write all decoded matches as Parquet")
def winrate_cmd(rpc, contract, player, start, end, preset, batch_size, delay_ms, attempts, show_all,
                json_out, all_json_out, parquet_out):
    """Compute a player's wins, losses and win rate between two dates."""
    start_d, end_d = preset_range(preset) if preset else (_as_date(start), _as_date(end))
    try:
        query = WinrateQuery(
            rpc_url=rpc, contract_address=contract, player=player,
            start_date=start_d, end_date=end_d,
            batch_size=batch_size, inter_batch_delay_ms=delay_ms, attempts=attempts,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    progress = Progress(SpinnerColumn(),
                        TextColumn("[bold]fetching logs[/]"),
                        BarColumn(),
                        MofNCompleteColumn(),
                        TextColumn("•"),
                        TimeElapsedColumn(),
                        TextColumn("→"),
                        TimeRemainingColumn(),
                        console=console,
                        transient=True,
                        expand=True,
                        )

    with progress:
        task = progress.add_task("spans", total=None)

        def on_progress(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total)

        try:
            report = asyncio.run(run_winrate_query(query, on_progress=on_progress))
        except WinrateError as e:
            raise click.ClickException(user_message(e))

    console.print(_stats_panel(report))
    if report.player_view:
        console.print(_player_table(report.player_view, player))
        console.print(_h2h_table(report.player_view))
    else:
        console.print("No matches for this player in the chosen range.")
    if show_all and report.matches:
        console.print(_all_table(report.matches))

    if json_out:
        path = JSONRowSink(json_out).write_rows(v.as_row() for v in report.player_view)
        console.print(f"[bold]wrote[/] {path}")
    if all_json_out:
        path = JSONRowSink(all_json_out).write_rows(r.as_row() for r in report.matches)
        console.print(f"[bold]wrote[/] {path}")
    if parquet_out:
        path = ParquetMatchSink(parquet_out).write_matches(report.matches)
        console.print(f"[bold]wrote[/] {path}")


@cli.command("resolve-block")
@click.option("--rpc", envvar="RPC_URL", default=DEFAULT_RPC_URL, show_default=True, help="RPC endpoint URL")
@click.option("--date", "day", type=DATE, required=True, help="Day, YYYY-MM-DD (local)")
@click.option("--edge", type=click.Choice(["start", "end"]), default="start", show_default=True,
              help="start = first block at/after 00:00:00, end = last block at/before 23:59:59")
def resolve_block_cmd(rpc, day, edge):
    """Resolve a calendar day to a block number."""
    async def run() -> int:
        async with HttpxRPC(rpc) as client:
            resolver = BlockResolver(client)
            if edge == "start":
                return await resolver.first_block_at_or_after(day_start_ts(day.date()))
            return await resolver.last_block_at_or_before(day_end_ts(day.date()))

    try:
        block = asyncio.run(run())
    except WinrateError as e:
        raise click.ClickException(user_message(e))
    console.print(f"{day.date()} ({edge}) → block [bold]{block:,}[/]")


if __name__ == "__main__":
    cli()
