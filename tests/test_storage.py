"""Tests for loading inputs and saving snapshots."""

import json
from datetime import datetime

import polars as pl
import pytest

from agent_leaderboard.constants import Channel, RefreshStatus, Tier
from agent_leaderboard.models import RefreshResult
from agent_leaderboard.pipeline import refresh_rankings
from agent_leaderboard.storage import (
    LeaderboardStorage,
    QAScoreParseError,
    SnapshotParseError,
)

from .conftest import api_conversation, make_record


@pytest.fixture
def storage() -> LeaderboardStorage:
    return LeaderboardStorage()


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


def test_load_conversations_api_and_cached_shapes(storage, tmp_path):
    path = tmp_path / "conversations.json"
    path.write_text(
        json.dumps(
            {
                "conversations": [
                    api_conversation(
                        "c1", ["7", "8"], reply_at=200, assigned_at=100, rating=5
                    ),
                    {
                        "conversation_id": "c2",
                        "first_teammate_id": "9",
                        "teammate_count": 1,
                        "frt_seconds": 45,
                        "handling_time_seconds": 600,
                        "cx_score_rating": 4,
                    },
                ]
            }
        )
    )

    first, second = storage.load_conversations(filepath=path)

    assert first.first_teammate_id == "7"
    assert first.teammate_count == 2
    assert first.first_admin_reply_at == 200
    assert first.satisfaction_rating == 5
    assert first.source_type == "conversation"

    assert second.first_teammate_id == "9"
    assert second.response_latency_seconds == 45
    assert second.handling_time_seconds == 600
    assert second.source_type is None


def test_load_conversations_filters_other_sources(storage, tmp_path):
    path = tmp_path / "conversations.json"
    path.write_text(
        json.dumps(
            [
                api_conversation("c1", ["1"], source_type="email"),
                api_conversation("c2", ["1"], source_type="conversation"),
                {"first_teammate_id": "2"},
            ]
        )
    )

    records = storage.load_conversations(filepath=path, source_type="email")
    assert [r.conversation_id for r in records] == ["c1", ""]


def test_load_conversations_rejects_non_list(storage, tmp_path):
    path = tmp_path / "conversations.json"
    path.write_text(json.dumps({"total_count": 0}))

    with pytest.raises(ValueError):
        storage.load_conversations(filepath=path)


def test_nan_literals_in_conversation_file_do_not_stall_refresh(storage, tmp_path):
    path = tmp_path / "conversations.json"
    path.write_text(
        "["
        '{"first_teammate_id": "1", "frt_seconds": 30, "handling_time_seconds": NaN},'
        '{"first_teammate_id": "2", "frt_seconds": NaN, "handling_time_seconds": 600},'
        '{"first_teammate_id": "2", "frt_seconds": Infinity, "cx_score_rating": 5}'
        "]"
    )

    records = storage.load_conversations(filepath=path)
    result = refresh_rankings(records=records, identities={}, min_conversations=1)

    assert records[0].handling_time_seconds is None
    assert records[1].response_latency_seconds is None
    assert result.succeeded
    assert [r.agent_id for r in result.rankings] == ["2", "1"]


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


def test_load_identities(storage, tmp_path):
    path = tmp_path / "admins.json"
    path.write_text(
        json.dumps(
            {
                "type": "admin.list",
                "admins": [
                    {"type": "admin", "id": 1, "name": "Amy", "email": "amy@example.com"},
                    {"type": "admin", "id": "2", "name": "Bob"},
                    {"type": "admin", "name": "No Id"},
                ],
            }
        )
    )

    identities = storage.load_identities(filepath=path)

    assert sorted(identities) == ["1", "2"]
    assert identities["1"].name == "Amy"
    assert identities["1"].email == "amy@example.com"
    assert identities["2"].email is None


# ---------------------------------------------------------------------------
# QA scores
# ---------------------------------------------------------------------------


def test_load_qa_scores_normalizes_headers_and_skips_bad_rows(storage, tmp_path):
    path = tmp_path / "qa.csv"
    path.write_text(
        " Agent Name ,QA Score\n"
        "John Smith,87.5\n"
        ",90\n"
        "Bob,not a number\n"
        "Cara,inf\n"
        "Dan,NaN\n"
        "  Jane Doe  ,92.1\n"
    )

    assert storage.load_qa_scores(filepath=path) == {
        "John Smith": 87.5,
        "Jane Doe": 92.1,
    }


def test_load_qa_scores_requires_columns(storage, tmp_path):
    path = tmp_path / "qa.csv"
    path.write_text("name,score\nAmy,80\n")

    with pytest.raises(QAScoreParseError, match="agent_name"):
        storage.load_qa_scores(filepath=path)


def test_load_qa_scores_without_valid_rows(storage, tmp_path):
    path = tmp_path / "qa.csv"
    path.write_text("agent_name,qa_score\nAmy,n/a\n")

    with pytest.raises(QAScoreParseError, match="No valid QA scores"):
        storage.load_qa_scores(filepath=path)


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


def test_save_result_snapshot(storage, tmp_path, identities):
    result = refresh_rankings(
        records=[make_record("1"), make_record("2")],
        identities=identities,
        channel=Channel.EMAIL,
        min_conversations=1,
    )
    path = tmp_path / "rankings.json"

    storage.save_result(
        result=result, filepath=path, snapshot_date=datetime(2026, 10, 19, 12, 0)
    )
    snapshot = json.loads(path.read_text())

    assert snapshot["snapshot_date"] == "2026-10-19T12:00:00"
    assert snapshot["period_start"] == "2026-10-01T00:00:00"
    assert snapshot["result"]["channel"] == "email"
    assert snapshot["result"]["status"] == "success"
    assert [r["rank"] for r in snapshot["result"]["rankings"]] == [1, 2]


def _email_result(identities):
    return refresh_rankings(
        records=[make_record("1"), make_record("2")],
        identities=identities,
        channel=Channel.EMAIL,
        min_conversations=1,
    )


def test_failed_result_keeps_previous_snapshot(storage, tmp_path, identities):
    path = tmp_path / "rankings.json"
    storage.save_result(result=_email_result(identities), filepath=path)
    before = path.read_text()

    failed = RefreshResult(
        channel=Channel.EMAIL,
        status=RefreshStatus.FAILED,
        agent_count=0,
        conversation_count=0,
        error_msg="boom",
    )
    history = tmp_path / "history"

    saved = storage.save_result(result=failed, filepath=path, history_dir=history)

    assert saved is None
    assert path.read_text() == before
    assert not history.exists()


def test_load_result_restores_rankings(storage, tmp_path, identities):
    result = _email_result(identities)
    path = tmp_path / "rankings.json"
    storage.save_result(
        result=result, filepath=path, snapshot_date=datetime(2026, 10, 19, 12, 0)
    )

    snapshot = storage.load_result(filepath=path)

    assert snapshot.snapshot_date == datetime(2026, 10, 19, 12, 0)
    assert snapshot.period_start == datetime(2026, 10, 1)
    assert snapshot.result.channel == Channel.EMAIL
    assert snapshot.result.succeeded
    assert snapshot.result.rankings == result.rankings
    assert snapshot.find_agent("1").tier == Tier.SILVER
    assert snapshot.find_agent("missing") is None


@pytest.mark.parametrize(
    "content",
    [
        "[]",
        json.dumps({"snapshot_date": "2026-10-19T12:00:00"}),
        json.dumps(
            {
                "snapshot_date": "2026-10-19T12:00:00",
                "period_start": "2026-10-01T00:00:00",
                "period_end": "2026-10-19T12:00:00",
                "result": {
                    "channel": "fax",
                    "status": "success",
                    "agent_count": 0,
                    "conversation_count": 0,
                },
            }
        ),
        "not json",
    ],
)
def test_load_result_rejects_invalid_snapshot(storage, tmp_path, content):
    path = tmp_path / "rankings.json"
    path.write_text(content)

    with pytest.raises(SnapshotParseError):
        storage.load_result(filepath=path)


def test_history_is_newest_first_and_filtered(storage, tmp_path, identities):
    history = tmp_path / "history"
    email_result = _email_result(identities)
    chat_result = refresh_rankings(
        records=[make_record("1")], identities=identities, min_conversations=1
    )

    for day in (3, 1, 2):
        storage.save_result(
            result=email_result,
            filepath=tmp_path / "rankings.json",
            snapshot_date=datetime(2026, 10, day, 9, 0),
            history_dir=history,
        )
    storage.save_result(
        result=chat_result,
        filepath=tmp_path / "rankings.json",
        snapshot_date=datetime(2026, 10, 4, 9, 0),
        history_dir=history,
    )
    (history / "broken.json").write_text("{")

    assert (history / "email-20261003T090000.json").exists()

    all_snapshots = storage.load_history(directory=history)
    assert [s.snapshot_date.day for s in all_snapshots] == [4, 3, 2, 1]

    email = storage.load_history(directory=history, channel=Channel.EMAIL, limit=2)
    assert [s.snapshot_date.day for s in email] == [3, 2]
    assert all(s.result.channel == Channel.EMAIL for s in email)


def test_save_rankings_csv(storage, tmp_path, identities):
    result = refresh_rankings(
        records=[make_record("1"), make_record("2")],
        identities=identities,
        qa_scores={"Amy": 80.0},
        min_conversations=1,
    )
    path = tmp_path / "rankings.csv"

    storage.save_rankings_csv(rankings=result.rankings, filepath=path)
    df = pl.read_csv(path)

    assert df["display_name"].to_list() == ["Amy", "Bob"]
    assert df["tier"].to_list() == ["Silver", "Rising"]
    assert df["rank"].to_list() == [1, 2]


def test_save_rankings_csv_skips_empty(storage, tmp_path):
    path = tmp_path / "rankings.csv"
    storage.save_rankings_csv(rankings=[], filepath=path)
    assert not path.exists()
