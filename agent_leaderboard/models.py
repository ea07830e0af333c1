"""Data models for the support agent leaderboard."""

import math
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any

from .constants import (
    CX_SCORE_ATTRIBUTE,
    ApiResponseKey,
    CachedRecordKey,
    Channel,
    RankingKey,
    RefreshStatus,
    SnapshotKey,
    Tier,
)


def as_number(value: Any) -> float | None:
    """Return value as a float if it is a finite real number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


@dataclass(frozen=True)
class ConversationRecord:
    """One support conversation, reduced to the fields the leaderboard reads.

    Attributes:
        conversation_id: Identifier of the conversation (may be empty).
        teammate_ids: Agents that took part, in the order they joined.
        teammate_count: Number of teammates that took part.
        first_admin_reply_at: Unix seconds of the first agent reply.
        last_assignment_at: Unix seconds of the assignment to a human agent.
        response_latency_seconds: Precomputed latency, used when timestamps are absent.
        handling_time_seconds: Active handling time reported by the ticketing system.
        satisfaction_rating: Raw CX rating, validated by the extractor.
        source_type: Medium the conversation came in on (e.g. 'conversation', 'email').
    """

    conversation_id: str
    teammate_ids: tuple[str, ...]
    teammate_count: int
    first_admin_reply_at: float | None = None
    last_assignment_at: float | None = None
    response_latency_seconds: float | None = None
    handling_time_seconds: float | None = None
    satisfaction_rating: Any = None
    source_type: str | None = None

    @property
    def first_teammate_id(self) -> str | None:
        return self.teammate_ids[0] if self.teammate_ids else None

    @classmethod
    def from_dict(cls, *, data: dict[str, Any]) -> "ConversationRecord":
        """Create a ConversationRecord from an API response or cached dictionary.

        The API format nests teammates under ``teammates.admins`` and timings
        under ``statistics``; the cached format stores the slim fields flat.

        Args:
            data: Dictionary containing conversation data from API or cache.

        Returns:
            ConversationRecord: A new record with missing fields left as None.
        """
        if (
            CachedRecordKey.FIRST_TEAMMATE_ID in data
            or CachedRecordKey.TEAMMATE_IDS in data
        ):
            return cls._from_cached(data=data)

        teammates = data.get(ApiResponseKey.TEAMMATES) or {}
        admins = teammates.get(ApiResponseKey.ADMINS) or []
        teammate_ids = tuple(
            str(admin.get(ApiResponseKey.ID))
            for admin in admins
            if isinstance(admin, dict) and admin.get(ApiResponseKey.ID) is not None
        )

        stats = data.get(ApiResponseKey.STATISTICS) or {}
        custom_attributes = data.get(ApiResponseKey.CUSTOM_ATTRIBUTES) or {}
        source = data.get(ApiResponseKey.SOURCE)
        if not isinstance(source, dict):
            source = {}

        return cls(
            conversation_id=str(data.get(ApiResponseKey.ID, "")),
            teammate_ids=teammate_ids,
            teammate_count=len(teammate_ids),
            first_admin_reply_at=as_number(
                stats.get(ApiResponseKey.FIRST_ADMIN_REPLY_AT)
            ),
            last_assignment_at=as_number(stats.get(ApiResponseKey.LAST_ASSIGNMENT_AT)),
            handling_time_seconds=as_number(stats.get(ApiResponseKey.HANDLING_TIME)),
            satisfaction_rating=custom_attributes.get(CX_SCORE_ATTRIBUTE),
            source_type=source.get(ApiResponseKey.TYPE),
        )

    @classmethod
    def _from_cached(cls, *, data: dict[str, Any]) -> "ConversationRecord":
        raw_ids = data.get(CachedRecordKey.TEAMMATE_IDS)
        if isinstance(raw_ids, list):
            teammate_ids = tuple(str(t) for t in raw_ids if t is not None and t != "")
        else:
            first_teammate = data.get(CachedRecordKey.FIRST_TEAMMATE_ID)
            teammate_ids = (str(first_teammate),) if first_teammate else ()

        teammate_count = data.get(CachedRecordKey.TEAMMATE_COUNT)
        if not isinstance(teammate_count, int) or isinstance(teammate_count, bool):
            teammate_count = len(teammate_ids)

        return cls(
            conversation_id=str(data.get(CachedRecordKey.CONVERSATION_ID, "")),
            teammate_ids=teammate_ids,
            teammate_count=teammate_count,
            response_latency_seconds=as_number(data.get(CachedRecordKey.FRT_SECONDS)),
            handling_time_seconds=as_number(
                data.get(CachedRecordKey.HANDLING_TIME_SECONDS)
            ),
            satisfaction_rating=data.get(CachedRecordKey.CX_SCORE_RATING),
            source_type=data.get(CachedRecordKey.SOURCE_TYPE),
        )


@dataclass(frozen=True)
class ConversationMeasurements:
    """Cleaned per-conversation measurements; None means excluded from the metric."""

    response_latency_seconds: float | None
    handling_time_seconds: float | None
    satisfaction_rating: float | None


@dataclass(frozen=True)
class AgentIdentity:
    """Display identity of a support agent."""

    agent_id: str
    name: str
    email: str | None = None

    @classmethod
    def from_dict(cls, *, data: dict[str, Any]) -> "AgentIdentity":
        """Create an AgentIdentity from an API admin dictionary.

        Args:
            data: Dictionary with ``id``, ``name`` and optionally ``email``.

        Returns:
            AgentIdentity: A new identity; the id is always stored as a string.
        """
        return cls(
            agent_id=str(data.get(ApiResponseKey.ID) or data.get(RankingKey.AGENT_ID)),
            name=data.get(ApiResponseKey.NAME) or "",
            email=data.get(ApiResponseKey.EMAIL),
        )


@dataclass(frozen=True)
class AgentMetrics:
    """Aggregated statistics for one agent over one refresh period.

    Attributes:
        agent_id: Ticketing system id of the agent.
        display_name: Name shown on the leaderboard.
        email: Agent email, if known.
        conversation_count: Conversations attributed to the agent.
        p95_response_time_seconds: 95th percentile of first response latency.
        avg_handling_time_seconds: Mean handling time of single-teammate conversations.
        cx_score_percent: Share of rated conversations rated 4 or 5.
        qa_score: External QA score, if one was supplied.
    """

    agent_id: str
    display_name: str
    conversation_count: int
    p95_response_time_seconds: float
    avg_handling_time_seconds: float
    cx_score_percent: float
    email: str | None = None
    qa_score: float | None = None


@dataclass(frozen=True)
class AgentRanking:
    """An agent's metrics together with percentiles, composite score and placement."""

    agent_id: str
    display_name: str
    conversation_count: int
    p95_response_time_seconds: float
    avg_handling_time_seconds: float
    cx_score_percent: float
    p95_response_percentile: float
    aht_percentile: float
    cx_score_percentile: float
    composite_score: float
    rank: int
    is_eligible: bool
    tier: Tier
    email: str | None = None
    qa_score: float | None = None
    qa_score_percentile: float | None = None

    @classmethod
    def from_metrics(cls, *, metrics: AgentMetrics, **scores: Any) -> "AgentRanking":
        """Build a ranking from an agent's metrics and its computed scores."""
        return cls(**asdict(metrics), **scores)

    @classmethod
    def from_dict(cls, *, data: dict[str, Any]) -> "AgentRanking":
        """Create an AgentRanking from a saved snapshot entry.

        Args:
            data: Dictionary written by ``to_dict``; export-only keys are ignored.

        Returns:
            AgentRanking: The ranking with its tier restored as an enum.
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values[RankingKey.TIER] = Tier(data[RankingKey.TIER])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert ranking to dictionary for serialization.

        Returns:
            dict[str, Any]: Flat dictionary with the tier name and its color.
        """
        data = asdict(self)
        data[RankingKey.TIER] = str(self.tier)
        data[RankingKey.TIER_COLOR] = self.tier.color
        return data


@dataclass
class RefreshResult:
    """Outcome of one leaderboard refresh.

    Attributes:
        channel: Channel the refresh ran for.
        status: Success or failure; there is no partial outcome.
        agent_count: Number of agents in the ranking (eligible and ineligible).
        conversation_count: Number of conversation records processed.
        rankings: Ordered rankings, eligible first.
        error_msg: Failure message when status is FAILED.
    """

    channel: Channel
    status: RefreshStatus
    agent_count: int
    conversation_count: int
    rankings: list[AgentRanking] = field(default_factory=list)
    error_msg: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == RefreshStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "channel": str(self.channel),
            "status": str(self.status),
            "agent_count": self.agent_count,
            "conversation_count": self.conversation_count,
            "error_msg": self.error_msg,
            "rankings": [ranking.to_dict() for ranking in self.rankings],
        }

    @classmethod
    def from_dict(cls, *, data: dict[str, Any]) -> "RefreshResult":
        """Create a RefreshResult from its serialized form."""
        return cls(
            channel=Channel(data["channel"]),
            status=RefreshStatus(data["status"]),
            agent_count=int(data["agent_count"]),
            conversation_count=int(data["conversation_count"]),
            rankings=[
                AgentRanking.from_dict(data=ranking)
                for ranking in data.get("rankings") or []
            ],
            error_msg=data.get("error_msg"),
        )


@dataclass
class RankingSnapshot:
    """A successful refresh result saved together with the period it covers.

    Attributes:
        snapshot_date: When the refresh ran.
        period_start: Start of the ranking period (month to date).
        period_end: End of the ranking period.
        result: The refresh result.
    """

    snapshot_date: datetime
    period_start: datetime
    period_end: datetime
    result: RefreshResult

    def find_agent(self, agent_id: str) -> AgentRanking | None:
        for ranking in self.result.rankings:
            if ranking.agent_id == agent_id:
                return ranking
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert snapshot to dictionary for serialization."""
        return {
            SnapshotKey.SNAPSHOT_DATE: self.snapshot_date.isoformat(),
            SnapshotKey.PERIOD_START: self.period_start.isoformat(),
            SnapshotKey.PERIOD_END: self.period_end.isoformat(),
            SnapshotKey.RESULT: self.result.to_dict(),
        }

    @classmethod
    def from_dict(cls, *, data: dict[str, Any]) -> "RankingSnapshot":
        """Create a RankingSnapshot from a saved JSON snapshot.

        Args:
            data: Dictionary written by ``to_dict``.

        Returns:
            RankingSnapshot: The snapshot with dates and rankings restored.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If a date, channel, status or tier cannot be parsed.
        """
        return cls(
            snapshot_date=datetime.fromisoformat(data[SnapshotKey.SNAPSHOT_DATE]),
            period_start=datetime.fromisoformat(data[SnapshotKey.PERIOD_START]),
            period_end=datetime.fromisoformat(data[SnapshotKey.PERIOD_END]),
            result=RefreshResult.from_dict(data=data[SnapshotKey.RESULT]),
        )
