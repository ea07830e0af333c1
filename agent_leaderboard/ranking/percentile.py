"""Convert a raw metric into cohort percentiles."""

import math
from collections.abc import Sequence

from ..constants import MAX_PERCENTILE, MetricDirection


def _average_ranks(values: Sequence[tuple[str, float]]) -> dict[str, float]:
    """Assign 1-based ranks in ascending order; ties share their average rank."""
    ordered = sorted(values, key=lambda item: item[1])
    ranks: dict[str, float] = {}

    start = 0
    while start < len(ordered):
        end = start + 1
        while end < len(ordered) and ordered[end][1] == ordered[start][1]:
            end += 1

        # The group occupies ranks start + 1 through end
        avg_rank = (start + 1 + end) / 2
        for agent_id, _ in ordered[start:end]:
            ranks[agent_id] = avg_rank
        start = end

    return ranks


def compute_percentiles(
    values: Sequence[tuple[str, float]],
    direction: MetricDirection,
) -> dict[str, float]:
    """Compute a 0-100 percentile for each agent within a single metric.

    With ``LOWER_IS_BETTER`` the lowest raw value gets 100; with
    ``HIGHER_IS_BETTER`` the highest does. Agents with exactly equal raw values
    get the same percentile (average rank method). A lone agent is the best of
    its cohort and gets 100.

    Args:
        values: (agent_id, raw_value) pairs for the cohort.
        direction: Polarity of the metric.

    Returns:
        dict[str, float]: Percentile per agent id; empty for an empty cohort.

    Raises:
        ValueError: If a raw value is NaN or infinite, since it has no place
            in the ordering.
    """
    for agent_id, value in values:
        if not math.isfinite(value):
            raise ValueError(f"Non-finite metric value {value} for agent {agent_id}")

    n = len(values)
    if n == 0:
        return {}
    if n == 1:
        return {values[0][0]: MAX_PERCENTILE}

    percentiles: dict[str, float] = {}
    for agent_id, rank in _average_ranks(values).items():
        if direction == MetricDirection.LOWER_IS_BETTER:
            percentiles[agent_id] = (n - rank) / (n - 1) * MAX_PERCENTILE
        else:
            percentiles[agent_id] = (rank - 1) / (n - 1) * MAX_PERCENTILE

    return percentiles
