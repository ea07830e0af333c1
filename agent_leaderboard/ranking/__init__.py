"""Eligibility, percentile and composite ranking for the leaderboard."""

from .composite import composite_score, get_tier, merge_qa_scores, rank_agents
from .eligibility import EligibilityResult, filter_eligible
from .percentile import compute_percentiles

__all__ = [
    "EligibilityResult",
    "composite_score",
    "compute_percentiles",
    "filter_eligible",
    "get_tier",
    "merge_qa_scores",
    "rank_agents",
]
