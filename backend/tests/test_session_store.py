# =============================================
# File: tests/test_session_store.py
# Purpose: Store conditional writes, defensive blob decoding and the retention sweep
# =============================================
import time

from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from vibecheck.models.participant import Participant
from vibecheck.models.session import Session as SessionModel, SessionStatus
from vibecheck.services.retention import RetentionSweeper
from vibecheck.services.vote_aggregator import all_completed, collect_votes

DAY = 24 * 60 * 60


def _backdate(store, session_id, seconds):
    with store._session_factory() as db:
        created = int(time.time()) - seconds
        db.query(SessionModel).filter(SessionModel.id == session_id).update({SessionModel.created_at: created})
        db.query(Participant).filter(Participant.session_id == session_id).update({Participant.created_at: created})
        db.commit()


def test_schema_has_participant_session_index(store):
    indexes = inspect(store.engine).get_indexes("participants")
    assert any(ix["column_names"] == ["session_id"] for ix in indexes)


def test_mark_collecting_only_from_lobby(store):
    session, _ = store.create_session("Alice")
    assert store.mark_collecting(session.id) is True
    assert store.mark_collecting(session.id) is False

    store.save_results(session.id, '{"group_summary": "x"}')
    assert store.mark_collecting(session.id) is False
    assert store.get_session(session.id).status == SessionStatus.COMPLETE


def test_conditional_results_write_has_one_winner(store):
    session, _ = store.create_session("Alice")
    assert store.save_results(session.id, '{"group_summary": "first"}', only_if_incomplete=True)
    assert not store.save_results(session.id, '{"group_summary": "second"}', only_if_incomplete=True)
    assert store.get_session(session.id).results == '{"group_summary": "first"}'

    # unconditional overwrite (close early)
    assert store.save_results(session.id, '{"group_summary": "third"}')
    assert store.get_session(session.id).results == '{"group_summary": "third"}'


def test_get_participant_scoped_to_session(store):
    a, host_a = store.create_session("Alice")
    b, _ = store.create_session("Bob")
    assert store.get_participant(a.id, host_a.id) is not None
    assert store.get_participant(b.id, host_a.id) is None


def test_malformed_answers_count_as_no_votes(store):
    session, host = store.create_session("Alice")
    store.record_answers(host.id, "{not json")
    guest = store.add_participant(session.id, "Bob")
    store.record_answers(guest.id, '{"1": {"movieId": 1, "title": "X", "vote": "meh"}}')

    roster = store.list_participants(session.id)
    assert all_completed(roster)
    votes = collect_votes(roster)
    assert sorted(v.name for v in votes) == ["Alice", "Bob"]
    assert all(v.answers == {} for v in votes)


def test_all_completed_needs_participants():
    assert all_completed([]) is False


def test_sweep_removes_only_expired_sessions(store):
    old, _ = store.create_session("Old")
    store.add_participant(old.id, "Older")
    fresh, _ = store.create_session("Fresh")
    _backdate(store, old.id, DAY + 60)
    _backdate(store, fresh.id, DAY - 60)

    sweeper = RetentionSweeper(store, ttl_seconds=DAY)
    assert sweeper.sweep() == 1

    assert store.get_session(old.id) is None
    assert store.list_participants(old.id) == []
    assert store.get_session(fresh.id) is not None
    assert len(store.list_participants(fresh.id)) == 1

    # idempotent
    assert sweeper.sweep() == 0


def test_sweep_tolerates_store_failure():
    class BrokenStore:
        def purge_older_than(self, cutoff):
            raise OperationalError("DELETE", {}, Exception("database is locked"))

    assert RetentionSweeper(BrokenStore()).sweep() == 0
