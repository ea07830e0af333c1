"""Loading leaderboard inputs and saving ranking snapshots."""

import json
import math
import re
from datetime import datetime
from pathlib import Path
from typing import Any

import polars as pl
from loguru import logger

from .constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_RANKINGS_OUTPUT,
    JSON_INDENT,
    SNAPSHOT_FILENAME,
    ApiResponseKey,
    Channel,
    LogMessage,
    QAColumn,
)
from .formatters import month_to_date_range
from .models import (
    AgentIdentity,
    AgentRanking,
    ConversationRecord,
    RankingSnapshot,
    RefreshResult,
)

# Wrapper keys used by list and search endpoints
_LIST_KEYS = ("conversations", "data")


class QAScoreParseError(ValueError):
    """Raised when an uploaded QA score CSV cannot be used."""


class SnapshotParseError(ValueError):
    """Raised when a saved ranking snapshot cannot be read back."""


def _normalize_header(header: str) -> str:
    return re.sub(r"\s+", "_", header.strip().lower())


def _read_json_list(filepath: Path, keys: tuple[str, ...]) -> list[dict[str, Any]]:
    with filepath.open("r") as f:
        data = json.load(f)

    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), list):
                data = data[key]
                break

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON list in {filepath}")

    return [item for item in data if isinstance(item, dict)]


class LeaderboardStorage:
    """Handles reading refresh inputs and writing ranking snapshots to disk."""

    def load_conversations(
        self,
        *,
        filepath: Path | str,
        source_type: str | None = None,
    ) -> list[ConversationRecord]:
        """Load conversation records from a JSON file.

        Accepts a bare list, or an object wrapping the list under
        ``conversations`` or ``data``. Both the ticketing API shape and the slim
        cached shape are understood.

        Args:
            filepath: Path of the JSON file.
            source_type: If given, records tagged with another source type are skipped.
                Records without a source type are kept.

        Returns:
            list[ConversationRecord]: Records in file order.
        """
        filepath = Path(filepath)
        records = [
            ConversationRecord.from_dict(data=item)
            for item in _read_json_list(filepath, _LIST_KEYS)
        ]

        if source_type is not None:
            kept = [
                record
                for record in records
                if record.source_type is None or record.source_type == source_type
            ]
            skipped = len(records) - len(kept)
            if skipped:
                logger.info(LogMessage.SKIPPED_SOURCE.format(skipped))
            records = kept

        logger.info(LogMessage.LOADED_CONVERSATIONS.format(len(records), filepath))
        return records

    def load_identities(self, *, filepath: Path | str) -> dict[str, AgentIdentity]:
        """Load agent identities from a JSON list or an ``{"admins": [...]}`` object.

        Args:
            filepath: Path of the JSON file.

        Returns:
            dict[str, AgentIdentity]: Identities keyed by agent id.
        """
        filepath = Path(filepath)
        identities: dict[str, AgentIdentity] = {}

        for item in _read_json_list(filepath, (ApiResponseKey.ADMINS,)):
            if item.get(ApiResponseKey.ID) is None:
                continue
            identity = AgentIdentity.from_dict(data=item)
            identities[identity.agent_id] = identity

        logger.info(LogMessage.LOADED_IDENTITIES.format(len(identities), filepath))
        return identities

    def load_qa_scores(self, *, filepath: Path | str) -> dict[str, float]:
        """Load external QA scores from a CSV file using Polars.

        Expected format::

            agent_name,qa_score
            John Smith,87.5

        Headers are matched case-insensitively with whitespace turned into
        underscores. Rows with a blank name or a non-numeric score are skipped.

        Args:
            filepath: Path of the CSV file.

        Returns:
            dict[str, float]: QA score per agent name (or agent id).

        Raises:
            QAScoreParseError: If the file cannot be parsed, lacks the required
                columns or has no valid rows.
        """
        filepath = Path(filepath)

        try:
            df = pl.read_csv(filepath, infer_schema_length=0)
        except pl.exceptions.PolarsError as e:
            raise QAScoreParseError(f"CSV parse errors: {e}") from e

        df = df.rename({column: _normalize_header(column) for column in df.columns})
        missing = [column for column in QAColumn if column not in df.columns]
        if missing:
            raise QAScoreParseError(f"Missing required columns: {', '.join(missing)}")

        qa_scores: dict[str, float] = {}
        for row in df.select(list(QAColumn)).iter_rows(named=True):
            name = (row[QAColumn.AGENT_NAME] or "").strip()
            try:
                score = float(row[QAColumn.QA_SCORE])
            except (TypeError, ValueError):
                continue
            if not name or not math.isfinite(score):
                continue
            qa_scores[name] = score

        if not qa_scores:
            raise QAScoreParseError(f"No valid QA scores found in {filepath}")

        logger.info(LogMessage.LOADED_QA_SCORES.format(len(qa_scores), filepath))
        return qa_scores

    def save_result(
        self,
        *,
        result: RefreshResult,
        filepath: Path | str = DEFAULT_RANKINGS_OUTPUT,
        snapshot_date: datetime | None = None,
        history_dir: Path | str | None = None,
    ) -> RankingSnapshot | None:
        """Save a successful refresh result to a JSON snapshot with its ranking period.

        A failed result is not written, so the last good snapshot at ``filepath``
        stays in place.

        Args:
            result: Outcome of the refresh.
            filepath: Path where the JSON file should be saved.
            snapshot_date: When the snapshot was taken; defaults to now.
            history_dir: If given, a dated copy is also written there.

        Returns:
            RankingSnapshot | None: The saved snapshot, or None for a failed result.
        """
        filepath = Path(filepath)

        if not result.succeeded:
            logger.warning(
                LogMessage.SKIPPED_FAILED_RESULT.format(result.channel, filepath)
            )
            return None

        snapshot_date = snapshot_date or datetime.now()
        period_start, period_end = month_to_date_range(snapshot_date)
        snapshot = RankingSnapshot(
            snapshot_date=snapshot_date,
            period_start=period_start,
            period_end=period_end,
            result=result,
        )

        self._write_snapshot(snapshot, filepath)
        logger.success(LogMessage.SAVED_RESULT.format(result.agent_count, filepath))

        if history_dir is not None:
            history_dir = Path(history_dir)
            history_dir.mkdir(parents=True, exist_ok=True)
            archive_path = history_dir / SNAPSHOT_FILENAME.format(
                channel=result.channel, date=snapshot_date
            )
            self._write_snapshot(snapshot, archive_path)
            logger.info(LogMessage.ARCHIVED_RESULT.format(archive_path))

        return snapshot

    def _write_snapshot(self, snapshot: RankingSnapshot, filepath: Path) -> None:
        with filepath.open("w") as f:
            json.dump(snapshot.to_dict(), f, indent=JSON_INDENT, default=str)

    def load_result(self, *, filepath: Path | str) -> RankingSnapshot:
        """Load a snapshot written by ``save_result``.

        Args:
            filepath: Path of the JSON snapshot.

        Returns:
            RankingSnapshot: The saved result and its period.

        Raises:
            SnapshotParseError: If the file is not a valid snapshot.
        """
        filepath = Path(filepath)

        try:
            with filepath.open("r") as f:
                data = json.load(f)
            return RankingSnapshot.from_dict(data=data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SnapshotParseError(f"Invalid snapshot {filepath}: {e}") from e

    def load_history(
        self,
        *,
        directory: Path | str,
        channel: Channel | None = None,
        limit: int | None = DEFAULT_HISTORY_LIMIT,
    ) -> list[RankingSnapshot]:
        """Load archived snapshots, newest first.

        Files that cannot be read as snapshots are skipped with a warning.

        Args:
            directory: Directory holding the dated snapshots.
            channel: If given, only snapshots for this channel are returned.
            limit: Maximum number of snapshots to return; None for all of them.

        Returns:
            list[RankingSnapshot]: Snapshots, most recent first.
        """
        directory = Path(directory)
        snapshots: list[RankingSnapshot] = []

        for snapshot_file in directory.glob("*.json"):
            try:
                snapshot = self.load_result(filepath=snapshot_file)
            except (OSError, SnapshotParseError) as e:
                logger.warning(LogMessage.SNAPSHOT_LOAD_FAILED.format(snapshot_file, e))
                continue
            if channel is None or snapshot.result.channel == channel:
                snapshots.append(snapshot)

        snapshots.sort(key=lambda snapshot: snapshot.snapshot_date, reverse=True)
        if limit is not None:
            snapshots = snapshots[:limit]

        logger.info(LogMessage.LOADED_SNAPSHOTS.format(len(snapshots), directory))
        return snapshots

    def save_rankings_csv(
        self,
        *,
        rankings: list[AgentRanking],
        filepath: Path | str,
    ) -> None:
        """Save rankings to a flat CSV file using Polars, one row per agent."""
        filepath = Path(filepath)

        if not rankings:
            logger.warning("No rankings to save to CSV")
            return

        df = pl.DataFrame(
            [ranking.to_dict() for ranking in rankings], infer_schema_length=None
        )
        df.write_csv(filepath)

        logger.success(LogMessage.SAVED_RESULT.format(len(df), filepath))
