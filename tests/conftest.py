import pytest

from agent_leaderboard.models import AgentIdentity, AgentMetrics, ConversationRecord


def make_record(
    agent_id: str | None = "1",
    *,
    teammate_ids: tuple[str, ...] | None = None,
    teammate_count: int | None = None,
    frt: float | None = None,
    handling: float | None = None,
    rating=None,
    source_type: str | None = None,
    conversation_id: str = "c",
) -> ConversationRecord:
    if teammate_ids is None:
        teammate_ids = (agent_id,) if agent_id else ()
    return ConversationRecord(
        conversation_id=conversation_id,
        teammate_ids=teammate_ids,
        teammate_count=len(teammate_ids) if teammate_count is None else teammate_count,
        response_latency_seconds=frt,
        handling_time_seconds=handling,
        satisfaction_rating=rating,
        source_type=source_type,
    )


def make_metrics(
    agent_id: str,
    name: str | None = None,
    *,
    count: int = 100,
    p95: float = 60.0,
    aht: float = 600.0,
    cx: float = 80.0,
    qa: float | None = None,
) -> AgentMetrics:
    return AgentMetrics(
        agent_id=agent_id,
        display_name=name or f"Agent {agent_id}",
        conversation_count=count,
        p95_response_time_seconds=p95,
        avg_handling_time_seconds=aht,
        cx_score_percent=cx,
        qa_score=qa,
    )


def api_conversation(
    conversation_id: str,
    teammate_ids: list[str],
    *,
    reply_at: int | None = None,
    assigned_at: int | None = None,
    handling_time: int | None = None,
    rating=None,
    source_type: str = "conversation",
) -> dict:
    """Conversation dictionary in the ticketing API shape."""
    return {
        "id": conversation_id,
        "type": "conversation",
        "admin_assignee_id": teammate_ids[-1] if teammate_ids else None,
        "teammates": {"admins": [{"type": "admin", "id": t} for t in teammate_ids]},
        "statistics": {
            "first_assignment_at": 1,
            "first_admin_reply_at": reply_at,
            "last_assignment_at": assigned_at,
            "handling_time": handling_time,
        },
        "custom_attributes": {} if rating is None else {"CX Score rating": rating},
        "source": {"type": source_type},
    }


@pytest.fixture
def identities() -> dict[str, AgentIdentity]:
    return {
        "1": AgentIdentity(agent_id="1", name="Amy", email="amy@example.com"),
        "2": AgentIdentity(agent_id="2", name="Bob", email="bob@example.com"),
    }
