"""Constants and enumerations for the support agent leaderboard."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Final


# Metric Cleaning
# Anything above 4 hours is a still-open conversation or a data anomaly
MAX_HANDLING_TIME_SECONDS: Final[int] = 4 * 60 * 60
CX_RATING_MIN: Final[int] = 1
CX_RATING_MAX: Final[int] = 5
POSITIVE_CX_RATING: Final[int] = 4
P95_QUANTILE: Final[float] = 0.95
CX_SCORE_ATTRIBUTE: Final[str] = "CX Score rating"

# Ranking
DEFAULT_MIN_CONVERSATIONS: Final[int] = 100
MAX_PERCENTILE: Final[float] = 100.0
# Share of each metric in the composite when all four are present
EQUAL_WEIGHT: Final[float] = 0.25
UNKNOWN_AGENT_NAME: Final[str] = "Agent {}"

# Bot, system and non-agent accounts that never appear on the leaderboard
DEFAULT_EXCLUDED_AGENT_IDS: Final[frozenset[str]] = frozenset(
    {
        "8771159",  # Help inbox
        "8915493",
        "8831788",
        "8833526",
        "8833695",
        "8833161",
        "8832131",
        "8835496",
    }
)

# Default Values
DEFAULT_RANKINGS_OUTPUT: Final[str] = "rankings.json"
# Number of past snapshots shown for one agent
DEFAULT_HISTORY_LIMIT: Final[int] = 30
SNAPSHOT_FILENAME: Final[str] = "{channel}-{date:%Y%m%dT%H%M%S}.json"
EXCLUDED_AGENT_IDS_ENVVAR: Final[str] = "LEADERBOARD_EXCLUDED_AGENT_IDS"

# JSON Serialization
JSON_INDENT: Final[int] = 2

# Numeric Constants
EXIT_CODE_ERROR: Final[int] = 1
SECONDS_PER_MINUTE: Final[int] = 60
MINUTES_PER_HOUR: Final[int] = 60


class Channel(StrEnum):
    """Logical support channels, each ranked separately."""

    CHAT = "chat"
    EMAIL = "email"


@dataclass(frozen=True)
class ChannelConfig:
    """Source filter and eligibility threshold for one channel."""

    source_type: str
    min_conversations: int


CHANNEL_CONFIGS: Final[dict[Channel, ChannelConfig]] = {
    Channel.CHAT: ChannelConfig(source_type="conversation", min_conversations=100),
    Channel.EMAIL: ChannelConfig(source_type="email", min_conversations=30),
}


class MetricDirection(StrEnum):
    """Polarity of a raw metric when converted to a percentile."""

    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"


class Tier(StrEnum):
    """Performance tiers, best first."""

    DIAMOND = "Diamond"
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"
    RISING = "Rising"

    @property
    def color(self) -> str:
        return TIER_COLORS[self]


TIER_COLORS: Final[dict[Tier, str]] = {
    Tier.DIAMOND: "blue",
    Tier.GOLD: "yellow",
    Tier.SILVER: "gray",
    Tier.BRONZE: "orange",
    Tier.RISING: "green",
}

# Minimum relative standing (percent of eligible agents ranked below) per tier
TIER_THRESHOLDS: Final[tuple[tuple[Tier, float], ...]] = (
    (Tier.DIAMOND, 90.0),
    (Tier.GOLD, 75.0),
    (Tier.SILVER, 50.0),
    (Tier.BRONZE, 25.0),
)


class RefreshStatus(StrEnum):
    """Outcome of a leaderboard refresh."""

    SUCCESS = "success"
    FAILED = "failed"


class ApiResponseKey(StrEnum):
    """Ticketing API conversation dictionary keys."""

    ID = "id"
    TEAMMATES = "teammates"
    ADMINS = "admins"
    STATISTICS = "statistics"
    FIRST_ADMIN_REPLY_AT = "first_admin_reply_at"
    LAST_ASSIGNMENT_AT = "last_assignment_at"
    HANDLING_TIME = "handling_time"
    CUSTOM_ATTRIBUTES = "custom_attributes"
    SOURCE = "source"
    TYPE = "type"
    NAME = "name"
    EMAIL = "email"


class CachedRecordKey(StrEnum):
    """Slim cached conversation dictionary keys."""

    CONVERSATION_ID = "conversation_id"
    FIRST_TEAMMATE_ID = "first_teammate_id"
    TEAMMATE_IDS = "teammate_ids"
    TEAMMATE_COUNT = "teammate_count"
    FRT_SECONDS = "frt_seconds"
    HANDLING_TIME_SECONDS = "handling_time_seconds"
    CX_SCORE_RATING = "cx_score_rating"
    SOURCE_TYPE = "source_type"


class QAColumn(StrEnum):
    """Required columns of an uploaded QA score CSV."""

    AGENT_NAME = "agent_name"
    QA_SCORE = "qa_score"


class RankingKey(StrEnum):
    """Ranking export field names."""

    AGENT_ID = "agent_id"
    TIER = "tier"
    TIER_COLOR = "tier_color"


class SnapshotKey(StrEnum):
    """Snapshot export metadata keys."""

    SNAPSHOT_DATE = "snapshot_date"
    PERIOD_START = "period_start"
    PERIOD_END = "period_end"
    RESULT = "result"


class LogMessage(StrEnum):
    """Log message templates."""

    AGGREGATED = "[{}] Aggregated metrics for {} agents from {} conversations"
    DISCARDED_UNATTRIBUTED = "Discarded {} conversations with no teammate"
    DISCARDED_EXCLUDED = "Discarded {} conversations handled only by excluded accounts"
    ELIGIBILITY = "[{}] {} eligible, {} ineligible (minimum {} conversations)"
    QA_MERGED = "Merged QA scores for {} of {} agents"
    RANKED = "[{}] Success: {} agents ranked from {} conversations"
    REFRESH_FAILED = "[{}] Failed: {}"
    LOADED_CONVERSATIONS = "Loaded {} conversations from {}"
    SKIPPED_SOURCE = "Skipped {} conversations from other sources"
    LOADED_IDENTITIES = "Loaded {} agent identities from {}"
    LOADED_QA_SCORES = "Loaded {} QA scores from {}"
    SAVED_RESULT = "Saved {} rankings to {}"
    ARCHIVED_RESULT = "Archived snapshot to {}"
    SKIPPED_FAILED_RESULT = "[{}] Refresh failed, keeping previous snapshot at {}"
    LOADED_SNAPSHOTS = "Loaded {} snapshots from {}"
    SNAPSHOT_LOAD_FAILED = "Failed to load {}: {}"
    AGENT_NOT_FOUND = "Agent {} not found in any snapshot"
    ERROR_OCCURRED = "Error occurred: {}"


class CliHelp(StrEnum):
    """CLI help messages."""

    APP = "Support agent performance leaderboard"
    CONVERSATIONS = "JSON file of conversations for the ranking period."
    ADMINS = "JSON file of agent identities (id, name, email)."
    CHANNEL = "Support channel to rank; selects the source filter and threshold."
    MIN_CONVERSATIONS = "Override the channel's minimum conversation count."
    QA_SCORES = "CSV of external QA scores with agent_name and qa_score columns."
    OUTPUT = "Output file path for the ranking snapshot."
    CSV = "Also write a flat CSV next to the JSON snapshot."
    EXCLUDED_AGENT_IDS = "Comma-separated agent ids to leave off the leaderboard."
    ALL_CHANNELS = "Rank every channel, writing one snapshot per channel."
    HISTORY_DIR = "Directory of dated snapshots kept for agent history."
    SNAPSHOT = "Saved JSON snapshot to display."
    AGENT_ID = "Agent id to show history for."
    HISTORY_CHANNEL = "Only show snapshots for this channel."
    LIMIT = "Maximum number of snapshots to show."
