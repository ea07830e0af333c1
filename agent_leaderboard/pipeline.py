"""Refresh pipeline: conversations to a ranked leaderboard for one channel."""

from collections.abc import Iterable, Mapping, Sequence

from loguru import logger

from .aggregator import aggregate_agent_metrics
from .constants import (
    CHANNEL_CONFIGS,
    DEFAULT_EXCLUDED_AGENT_IDS,
    Channel,
    LogMessage,
    RefreshStatus,
)
from .models import AgentIdentity, ConversationRecord, RefreshResult
from .ranking import rank_agents


def refresh_rankings(
    *,
    records: Sequence[ConversationRecord],
    identities: Mapping[str, AgentIdentity],
    channel: Channel = Channel.CHAT,
    qa_scores: Mapping[str, float] | None = None,
    min_conversations: int | None = None,
    excluded_agent_ids: Iterable[str] = DEFAULT_EXCLUDED_AGENT_IDS,
) -> RefreshResult:
    """Aggregate and rank one channel's conversations.

    The run holds no state between calls, so a caller may retry it from
    scratch with the same inputs and get the same result. Any error is logged
    and reported as a failed result rather than raised.

    Args:
        records: Complete, deduplicated conversations for the period.
        identities: Agent id to identity lookup for display names.
        channel: Channel being ranked; selects the default eligibility threshold.
        qa_scores: Optional QA scores keyed by agent display name or id.
        min_conversations: Overrides the channel's eligibility threshold.
        excluded_agent_ids: Bot and system accounts to leave out.

    Returns:
        RefreshResult: Success with rankings and counts, or failure with a message.
    """
    if min_conversations is None:
        min_conversations = CHANNEL_CONFIGS[channel].min_conversations

    try:
        agent_metrics = aggregate_agent_metrics(
            records, identities, excluded_agent_ids=excluded_agent_ids
        )
        logger.info(
            LogMessage.AGGREGATED.format(channel, len(agent_metrics), len(records))
        )

        rankings = rank_agents(agent_metrics, qa_scores, min_conversations)

        eligible_count = sum(1 for ranking in rankings if ranking.is_eligible)
        logger.info(
            LogMessage.ELIGIBILITY.format(
                channel,
                eligible_count,
                len(rankings) - eligible_count,
                min_conversations,
            )
        )
    except Exception as e:
        logger.exception(LogMessage.REFRESH_FAILED.format(channel, e))
        return RefreshResult(
            channel=channel,
            status=RefreshStatus.FAILED,
            agent_count=0,
            conversation_count=0,
            error_msg=str(e),
        )

    logger.success(LogMessage.RANKED.format(channel, len(rankings), len(records)))
    return RefreshResult(
        channel=channel,
        status=RefreshStatus.SUCCESS,
        agent_count=len(rankings),
        conversation_count=len(records),
        rankings=rankings,
    )
