"""Support agent performance leaderboard package."""

from .aggregator import aggregate_agent_metrics
from .extractor import extract_measurements
from .models import (
    AgentIdentity,
    AgentMetrics,
    AgentRanking,
    ConversationMeasurements,
    ConversationRecord,
    RankingSnapshot,
    RefreshResult,
)
from .pipeline import refresh_rankings
from .ranking import compute_percentiles, filter_eligible, rank_agents
from .storage import LeaderboardStorage

__all__ = [
    "AgentIdentity",
    "AgentMetrics",
    "AgentRanking",
    "ConversationMeasurements",
    "ConversationRecord",
    "LeaderboardStorage",
    "RankingSnapshot",
    "RefreshResult",
    "aggregate_agent_metrics",
    "compute_percentiles",
    "extract_measurements",
    "filter_eligible",
    "rank_agents",
    "refresh_rankings",
]
