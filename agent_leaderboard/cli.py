"""CLI interface for the support agent leaderboard."""

from datetime import datetime
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from .constants import (
    CHANNEL_CONFIGS,
    DEFAULT_EXCLUDED_AGENT_IDS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_RANKINGS_OUTPUT,
    EXCLUDED_AGENT_IDS_ENVVAR,
    EXIT_CODE_ERROR,
    Channel,
    CliHelp,
    LogMessage,
    Tier,
)
from .formatters import format_duration, format_percent, format_percentile
from .models import AgentIdentity, AgentRanking, RankingSnapshot
from .pipeline import refresh_rankings
from .storage import LeaderboardStorage

app = typer.Typer(help=CliHelp.APP)
console = Console()

# rich spells its grays "grey" and has no plain "orange"
_RICH_COLOR_NAMES = {"gray": "grey70", "orange": "dark_orange"}


def _tier_style(tier: Tier) -> str:
    return _RICH_COLOR_NAMES.get(tier.color, tier.color)


def _parse_excluded_ids(raw: str | None) -> frozenset[str]:
    if raw is None:
        return DEFAULT_EXCLUDED_AGENT_IDS
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _channel_output(output: Path, channel: Channel) -> Path:
    return output.with_name(f"{output.stem}-{channel}{output.suffix}")


def _with_percentile(value: str, ranking: AgentRanking, percentile: float) -> str:
    if not ranking.is_eligible:
        return value
    return f"{value} ({format_percentile(percentile)})"


def _render_table(channel: Channel, rankings: list[AgentRanking]) -> Table:
    """Build a rich table of the leaderboard, eligible agents first."""
    table = Table(title=f"{channel.capitalize()} leaderboard")
    table.add_column("Rank", justify="right")
    table.add_column("Agent")
    table.add_column("Tier")
    table.add_column("Convos", justify="right")
    table.add_column("P95 FRT", justify="right")
    table.add_column("AHT", justify="right")
    table.add_column("CX", justify="right")
    table.add_column("QA", justify="right")
    table.add_column("Score", justify="right")

    for ranking in rankings:
        if ranking.is_eligible:
            rank = str(ranking.rank)
            tier = f"[{_tier_style(ranking.tier)}]{ranking.tier}[/]"
            score = format_percentile(ranking.composite_score)
        else:
            rank = "-"
            tier = "[dim]not eligible[/]"
            score = "-"

        table.add_row(
            rank,
            ranking.display_name,
            tier,
            str(ranking.conversation_count),
            format_duration(ranking.p95_response_time_seconds),
            format_duration(ranking.avg_handling_time_seconds),
            format_percent(ranking.cx_score_percent),
            f"{ranking.qa_score:g}" if ranking.qa_score is not None else "-",
            score,
        )

    return table


def _render_history(
    agent_id: str, entries: list[tuple[RankingSnapshot, AgentRanking]]
) -> Table:
    """Build a rich table of one agent's standing across snapshots, newest first."""
    display_name = entries[0][1].display_name
    table = Table(title=f"{display_name} ({agent_id}) history")
    table.add_column("Date")
    table.add_column("Channel")
    table.add_column("Rank", justify="right")
    table.add_column("Tier")
    table.add_column("Convos", justify="right")
    table.add_column("P95 FRT", justify="right")
    table.add_column("AHT", justify="right")
    table.add_column("CX", justify="right")
    table.add_column("QA", justify="right")
    table.add_column("Score", justify="right")

    for snapshot, ranking in entries:
        if ranking.is_eligible:
            rank = f"{ranking.rank}/{snapshot.result.agent_count}"
            tier = f"[{_tier_style(ranking.tier)}]{ranking.tier}[/]"
            score = format_percentile(ranking.composite_score)
        else:
            rank = "-"
            tier = "[dim]not eligible[/]"
            score = "-"

        qa = "-"
        if ranking.qa_score is not None:
            qa = f"{ranking.qa_score:g}"
            if ranking.qa_score_percentile is not None:
                qa = _with_percentile(qa, ranking, ranking.qa_score_percentile)

        table.add_row(
            f"{snapshot.snapshot_date:%Y-%m-%d %H:%M}",
            str(snapshot.result.channel),
            rank,
            tier,
            str(ranking.conversation_count),
            _with_percentile(
                format_duration(ranking.p95_response_time_seconds),
                ranking,
                ranking.p95_response_percentile,
            ),
            _with_percentile(
                format_duration(ranking.avg_handling_time_seconds),
                ranking,
                ranking.aht_percentile,
            ),
            _with_percentile(
                format_percent(ranking.cx_score_percent),
                ranking,
                ranking.cx_score_percentile,
            ),
            qa,
            score,
        )

    return table


@app.command()
def rank(
    conversations: Path = typer.Option(
        ..., "--conversations", "-c", exists=True, help=CliHelp.CONVERSATIONS
    ),
    admins: Path = typer.Option(
        None, "--admins", "-a", exists=True, help=CliHelp.ADMINS
    ),
    channel: Channel = typer.Option(Channel.CHAT, "--channel", help=CliHelp.CHANNEL),
    all_channels: bool = typer.Option(
        False, "--all-channels", help=CliHelp.ALL_CHANNELS
    ),
    min_conversations: int = typer.Option(
        None, "--min-conversations", min=0, help=CliHelp.MIN_CONVERSATIONS
    ),
    qa_scores: Path = typer.Option(
        None, "--qa-scores", "-q", exists=True, help=CliHelp.QA_SCORES
    ),
    output: Path = typer.Option(
        DEFAULT_RANKINGS_OUTPUT, "--output", "-o", help=CliHelp.OUTPUT
    ),
    history_dir: Path = typer.Option(
        None, "--history-dir", "-d", file_okay=False, help=CliHelp.HISTORY_DIR
    ),
    write_csv: bool = typer.Option(False, "--csv/--no-csv", help=CliHelp.CSV),
    excluded_agent_ids: str = typer.Option(
        None,
        "--excluded-agent-ids",
        envvar=EXCLUDED_AGENT_IDS_ENVVAR,
        help=CliHelp.EXCLUDED_AGENT_IDS,
    ),
) -> None:
    """Rank support agents from a batch of conversations.

    Aggregates per-agent response time, handling time and CX score, converts each
    into a percentile among eligible agents and orders them by composite score.
    With --all-channels each channel is ranked separately and written to its own
    snapshot (e.g. rankings-chat.json). A failed refresh leaves the previous
    snapshot untouched and makes the command exit with an error.
    """
    storage = LeaderboardStorage()
    snapshot_date = datetime.now()
    channels_to_rank = list(Channel) if all_channels else [channel]
    excluded = _parse_excluded_ids(excluded_agent_ids)

    try:
        batches = {
            ch: storage.load_conversations(
                filepath=conversations,
                source_type=CHANNEL_CONFIGS[ch].source_type,
            )
            for ch in channels_to_rank
        }
        identities: dict[str, AgentIdentity] = (
            storage.load_identities(filepath=admins) if admins else {}
        )
        scores = storage.load_qa_scores(filepath=qa_scores) if qa_scores else None
    except (OSError, ValueError) as e:
        logger.error(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)

    failed = False
    for ch in channels_to_rank:
        result = refresh_rankings(
            records=batches[ch],
            identities=identities,
            channel=ch,
            qa_scores=scores,
            min_conversations=min_conversations,
            excluded_agent_ids=excluded,
        )

        target = _channel_output(output, ch) if all_channels else output
        snapshot = storage.save_result(
            result=result,
            filepath=target,
            snapshot_date=snapshot_date,
            history_dir=history_dir,
        )
        if snapshot is None:
            failed = True
            continue

        if write_csv:
            storage.save_rankings_csv(
                rankings=result.rankings, filepath=target.with_suffix(".csv")
            )

        console.print(_render_table(ch, result.rankings))

    if failed:
        raise typer.Exit(code=EXIT_CODE_ERROR)


@app.command()
def show(
    snapshot: Path = typer.Option(
        ..., "--snapshot", "-s", exists=True, dir_okay=False, help=CliHelp.SNAPSHOT
    ),
) -> None:
    """Display a saved leaderboard snapshot."""
    try:
        saved = LeaderboardStorage().load_result(filepath=snapshot)
    except (OSError, ValueError) as e:
        logger.error(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)

    console.print(
        f"Period {saved.period_start:%Y-%m-%d} to {saved.period_end:%Y-%m-%d}"
        f" (taken {saved.snapshot_date:%Y-%m-%d %H:%M})"
    )
    console.print(_render_table(saved.result.channel, saved.result.rankings))


@app.command()
def agent(
    agent_id: str = typer.Option(..., "--agent-id", "-i", help=CliHelp.AGENT_ID),
    history_dir: Path = typer.Option(
        ...,
        "--history-dir",
        "-d",
        exists=True,
        file_okay=False,
        help=CliHelp.HISTORY_DIR,
    ),
    channel: Channel = typer.Option(None, "--channel", help=CliHelp.HISTORY_CHANNEL),
    limit: int = typer.Option(
        DEFAULT_HISTORY_LIMIT, "--limit", "-n", min=1, help=CliHelp.LIMIT
    ),
) -> None:
    """Show one agent's metrics and percentiles across archived snapshots."""
    snapshots = LeaderboardStorage().load_history(
        directory=history_dir, channel=channel, limit=None
    )

    entries: list[tuple[RankingSnapshot, AgentRanking]] = []
    for snapshot in snapshots:
        ranking = snapshot.find_agent(agent_id)
        if ranking is not None:
            entries.append((snapshot, ranking))

    if not entries:
        logger.error(LogMessage.AGENT_NOT_FOUND.format(agent_id))
        raise typer.Exit(code=EXIT_CODE_ERROR)

    console.print(_render_history(agent_id, entries[:limit]))


@app.command()
def channels() -> None:
    """Show the source filter and eligibility threshold per channel."""
    table = Table(title="Channels")
    table.add_column("Channel")
    table.add_column("Source type")
    table.add_column("Min conversations", justify="right")

    for channel, config in CHANNEL_CONFIGS.items():
        table.add_row(str(channel), config.source_type, str(config.min_conversations))

    console.print(table)
