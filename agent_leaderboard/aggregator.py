"""Aggregate cleaned conversation measurements into per-agent metrics."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from loguru import logger

from .constants import (
    DEFAULT_EXCLUDED_AGENT_IDS,
    P95_QUANTILE,
    POSITIVE_CX_RATING,
    UNKNOWN_AGENT_NAME,
    LogMessage,
)
from .extractor import extract_measurements
from .models import AgentIdentity, AgentMetrics, ConversationRecord


@dataclass
class _AgentAccumulator:
    """Running totals for one agent during a single aggregation pass."""

    conversation_count: int = 0
    latencies: list[float] = field(default_factory=list)
    handling_times: list[float] = field(default_factory=list)
    cx_positive: int = 0
    cx_total: int = 0


def compute_p95(values: list[float]) -> float:
    """Compute the 95th percentile by nearest rank.

    Args:
        values: Samples in any order.

    Returns:
        float: The sample at index ceil(0.95 * n) - 1 of the sorted values,
            or 0 when there are no samples.
    """
    if not values:
        return 0.0

    ordered = sorted(values)
    index = math.ceil(P95_QUANTILE * len(ordered)) - 1
    return ordered[max(0, index)]


def aggregate_agent_metrics(
    records: Iterable[ConversationRecord],
    identities: Mapping[str, AgentIdentity],
    *,
    excluded_agent_ids: Iterable[str] = DEFAULT_EXCLUDED_AGENT_IDS,
) -> list[AgentMetrics]:
    """Group conversations by the agent who replied first and summarize them.

    Credit goes to the first teammate on the conversation that is not an
    excluded account, not the current assignee, since reassignments would
    otherwise move it to whoever closed the conversation. Conversations whose
    teammates are all excluded are dropped.

    Handling time is only averaged over conversations with a single teammate
    because the reported value covers everyone involved.

    Args:
        records: Conversations for the ranking period.
        identities: Agent id to identity lookup; may be partial.
        excluded_agent_ids: Bot and system accounts to leave out.

    Returns:
        list[AgentMetrics]: One entry per attributed agent, in order of first appearance.
    """
    excluded = frozenset(excluded_agent_ids)
    accumulators: dict[str, _AgentAccumulator] = {}
    unattributed = 0
    excluded_count = 0

    for record in records:
        if not record.teammate_ids or record.teammate_count < 1:
            unattributed += 1
            continue

        agent_id = next((t for t in record.teammate_ids if t not in excluded), None)
        if agent_id is None:
            excluded_count += 1
            continue

        acc = accumulators.setdefault(agent_id, _AgentAccumulator())
        acc.conversation_count += 1

        measurements = extract_measurements(record)

        if measurements.response_latency_seconds is not None:
            acc.latencies.append(measurements.response_latency_seconds)

        if (
            measurements.handling_time_seconds is not None
            and record.teammate_count == 1
        ):
            acc.handling_times.append(measurements.handling_time_seconds)

        if measurements.satisfaction_rating is not None:
            acc.cx_total += 1
            if measurements.satisfaction_rating >= POSITIVE_CX_RATING:
                acc.cx_positive += 1

    if unattributed:
        logger.debug(LogMessage.DISCARDED_UNATTRIBUTED.format(unattributed))
    if excluded_count:
        logger.debug(LogMessage.DISCARDED_EXCLUDED.format(excluded_count))

    results: list[AgentMetrics] = []
    for agent_id, acc in accumulators.items():
        identity = identities.get(agent_id)
        avg_handling = (
            sum(acc.handling_times) / len(acc.handling_times)
            if acc.handling_times
            else 0.0
        )
        cx_score_percent = (
            acc.cx_positive / acc.cx_total * 100 if acc.cx_total > 0 else 0.0
        )

        results.append(
            AgentMetrics(
                agent_id=agent_id,
                display_name=(
                    identity.name
                    if identity and identity.name
                    else UNKNOWN_AGENT_NAME.format(agent_id)
                ),
                email=identity.email if identity else None,
                conversation_count=acc.conversation_count,
                p95_response_time_seconds=compute_p95(acc.latencies),
                avg_handling_time_seconds=avg_handling,
                cx_score_percent=cx_score_percent,
            )
        )

    return results
