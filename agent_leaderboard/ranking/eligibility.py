"""Minimum-volume eligibility for the leaderboard."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..constants import DEFAULT_MIN_CONVERSATIONS
from ..models import AgentMetrics


@dataclass
class EligibilityResult:
    """Agents split by whether they handled enough conversations to be ranked."""

    eligible: list[AgentMetrics] = field(default_factory=list)
    ineligible: list[AgentMetrics] = field(default_factory=list)


def filter_eligible(
    agents: Iterable[AgentMetrics],
    min_conversations: int = DEFAULT_MIN_CONVERSATIONS,
) -> EligibilityResult:
    """Partition agents by conversation count, keeping input order in each part."""
    result = EligibilityResult()

    for agent in agents:
        if agent.conversation_count >= min_conversations:
            result.eligible.append(agent)
        else:
            result.ineligible.append(agent)

    return result
