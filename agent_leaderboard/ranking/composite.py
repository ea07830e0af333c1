"""Composite scoring, ordering and tiering of eligible agents."""

from collections.abc import Iterable, Mapping
from dataclasses import replace

from loguru import logger

from ..constants import (
    DEFAULT_MIN_CONVERSATIONS,
    EQUAL_WEIGHT,
    TIER_THRESHOLDS,
    LogMessage,
    MetricDirection,
    Tier,
)
from ..models import AgentMetrics, AgentRanking, as_number
from .eligibility import filter_eligible
from .percentile import compute_percentiles


def get_tier(rank: int, total_eligible: int) -> Tier:
    """Classify a rank by the share of eligible agents ranked below it.

    Args:
        rank: 1-based rank of the agent.
        total_eligible: Number of eligible agents.

    Returns:
        Tier: Diamond for the top 10%, then Gold, Silver and Bronze at 25% steps.
    """
    if total_eligible == 0:
        return Tier.RISING

    standing = (total_eligible - rank) / total_eligible * 100
    for tier, threshold in TIER_THRESHOLDS:
        if standing >= threshold:
            return tier
    return Tier.RISING


def merge_qa_scores(
    agents: Iterable[AgentMetrics],
    qa_scores: Mapping[str, float],
) -> list[AgentMetrics]:
    """Attach external QA scores, matched by display name first, then agent id.

    Scores that are not finite numbers are ignored, leaving the agent without
    a QA score.
    """
    merged: list[AgentMetrics] = []
    matched = 0

    for agent in agents:
        score = as_number(qa_scores.get(agent.display_name))
        if score is None:
            score = as_number(qa_scores.get(agent.agent_id))
        if score is not None:
            agent = replace(agent, qa_score=score)
            matched += 1
        merged.append(agent)

    logger.debug(LogMessage.QA_MERGED.format(matched, len(merged)))
    return merged


def composite_score(
    p95_percentile: float,
    aht_percentile: float,
    cx_percentile: float,
    qa_percentile: float | None,
) -> float:
    """Equal-weight the available percentiles.

    Without a QA percentile the remaining three share the weight evenly instead
    of counting QA as zero.
    """
    if qa_percentile is not None:
        return (
            p95_percentile * EQUAL_WEIGHT
            + aht_percentile * EQUAL_WEIGHT
            + cx_percentile * EQUAL_WEIGHT
            + qa_percentile * EQUAL_WEIGHT
        )
    return (p95_percentile + aht_percentile + cx_percentile) / 3


def _sort_key(ranking: AgentRanking) -> tuple[float, float, float, str, str]:
    # Composite, then CX, then AHT (all descending), then name ascending
    return (
        -ranking.composite_score,
        -ranking.cx_score_percentile,
        -ranking.aht_percentile,
        ranking.display_name,
        ranking.agent_id,
    )


def _ineligible_ranking(agent: AgentMetrics) -> AgentRanking:
    return AgentRanking.from_metrics(
        metrics=agent,
        p95_response_percentile=0.0,
        aht_percentile=0.0,
        cx_score_percentile=0.0,
        qa_score_percentile=None,
        composite_score=0.0,
        rank=0,
        is_eligible=False,
        tier=Tier.RISING,
    )


def rank_agents(
    agents: Iterable[AgentMetrics],
    qa_scores: Mapping[str, float] | None = None,
    min_conversations: int = DEFAULT_MIN_CONVERSATIONS,
) -> list[AgentRanking]:
    """Rank agents by composite percentile score.

    Percentiles are computed among eligible agents only, one pass per metric.
    QA percentiles are computed over the eligible agents that have a QA score.
    Eligible agents get ranks 1..N and a tier; ineligible agents follow them
    with zeroed scores, rank 0 and the Rising tier.

    Args:
        agents: Aggregated per-agent metrics.
        qa_scores: Optional QA scores keyed by agent display name or id.
        min_conversations: Eligibility threshold for the channel.

    Returns:
        list[AgentRanking]: Eligible agents best first, then ineligible agents.
    """
    agents = list(agents)
    if qa_scores:
        agents = merge_qa_scores(agents, qa_scores)

    split = filter_eligible(agents, min_conversations)
    eligible = split.eligible

    p95_percentiles = compute_percentiles(
        [(a.agent_id, a.p95_response_time_seconds) for a in eligible],
        MetricDirection.LOWER_IS_BETTER,
    )
    aht_percentiles = compute_percentiles(
        [(a.agent_id, a.avg_handling_time_seconds) for a in eligible],
        MetricDirection.LOWER_IS_BETTER,
    )
    cx_percentiles = compute_percentiles(
        [(a.agent_id, a.cx_score_percent) for a in eligible],
        MetricDirection.HIGHER_IS_BETTER,
    )
    qa_percentiles = compute_percentiles(
        [(a.agent_id, a.qa_score) for a in eligible if a.qa_score is not None],
        MetricDirection.HIGHER_IS_BETTER,
    )

    scored: list[AgentRanking] = []
    for agent in eligible:
        p95_p = p95_percentiles.get(agent.agent_id, 0.0)
        aht_p = aht_percentiles.get(agent.agent_id, 0.0)
        cx_p = cx_percentiles.get(agent.agent_id, 0.0)
        qa_p = qa_percentiles.get(agent.agent_id)

        scored.append(
            AgentRanking.from_metrics(
                metrics=agent,
                p95_response_percentile=p95_p,
                aht_percentile=aht_p,
                cx_score_percentile=cx_p,
                qa_score_percentile=qa_p,
                composite_score=composite_score(p95_p, aht_p, cx_p, qa_p),
                rank=0,
                is_eligible=True,
                tier=Tier.RISING,
            )
        )

    scored.sort(key=_sort_key)

    total_eligible = len(scored)
    ranked = [
        replace(ranking, rank=position, tier=get_tier(position, total_eligible))
        for position, ranking in enumerate(scored, start=1)
    ]

    return ranked + [_ineligible_ranking(agent) for agent in split.ineligible]
