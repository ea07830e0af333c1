"""Per-conversation metric extraction."""

from .constants import CX_RATING_MAX, CX_RATING_MIN, MAX_HANDLING_TIME_SECONDS
from .models import ConversationMeasurements, ConversationRecord, as_number


def _response_latency(record: ConversationRecord) -> float | None:
    # last_assignment_at is the hand-off to a human; the first assignment
    # belongs to the bot inbox and is too early.
    if record.first_admin_reply_at and record.last_assignment_at:
        latency = record.first_admin_reply_at - record.last_assignment_at
    else:
        latency = record.response_latency_seconds

    # Reassigned conversations can report a reply before the last assignment
    if latency is None or latency < 0:
        return None
    return latency


def _handling_time(record: ConversationRecord) -> float | None:
    handling_time = record.handling_time_seconds
    if handling_time is None or handling_time > MAX_HANDLING_TIME_SECONDS:
        return None
    return handling_time


def _satisfaction_rating(record: ConversationRecord) -> float | None:
    rating = as_number(record.satisfaction_rating)
    if rating is None or not CX_RATING_MIN <= rating <= CX_RATING_MAX:
        return None
    return rating


def extract_measurements(record: ConversationRecord) -> ConversationMeasurements:
    """Derive the cleaned measurements of a single conversation.

    Values that are missing, negative, above the handling-time cap or outside
    the 1-5 rating scale come back as None so the aggregator leaves them out
    of the corresponding metric.

    Args:
        record: Conversation to measure.

    Returns:
        ConversationMeasurements: Response latency, handling time and CX rating.
    """
    return ConversationMeasurements(
        response_latency_seconds=_response_latency(record),
        handling_time_seconds=_handling_time(record),
        satisfaction_rating=_satisfaction_rating(record),
    )
