# =============================================
# File: tests/test_session_machine.py
# Purpose: Session lifecycle, completion detection, exactly-once synthesis and close-early override
# =============================================
import asyncio

import pytest

from vibecheck.errors import ConflictError, NotFoundError, ValidationError
from vibecheck.models.session import SessionStatus

from conftest import make_answers

ANSWERS = make_answers((496243, "Parasite", "love"), (550, "Fight Club", "havent_seen"))

STATUS_ORDER = [SessionStatus.LOBBY, SessionStatus.COLLECTING, SessionStatus.COMPLETE]


def _three_person_session(machine):
    """Host Alice plus Bob and Cara, quiz started"""
    async def setup():
        snapshot = await machine.create_session("Alice")
        sid = snapshot.session.id
        bob, _ = await machine.join_session(sid, "Bob")
        cara, _ = await machine.join_session(sid, "Cara")
        await machine.start_quiz(sid)
        return sid, [snapshot.participants[0].id, bob.id, cara.id]
    return asyncio.run(setup())


def test_create_session_enrolls_host(machine):
    snapshot = asyncio.run(machine.create_session("  Alice "))
    assert snapshot.session.status == SessionStatus.LOBBY
    assert snapshot.session.results is None
    assert [p.name for p in snapshot.participants] == ["Alice"]

    stored = machine.get_session(snapshot.session.id)
    assert [p.name for p in stored.participants] == ["Alice"]
    assert stored.session.host_name == "Alice"


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_session_requires_name(machine, name):
    with pytest.raises(ValidationError):
        asyncio.run(machine.create_session(name))


def test_join_unknown_session(machine):
    with pytest.raises(NotFoundError):
        asyncio.run(machine.join_session("nope1234", "Bob"))


def test_join_requires_name(machine):
    sid = asyncio.run(machine.create_session("Alice")).session.id
    with pytest.raises(ValidationError):
        asyncio.run(machine.join_session(sid, "  "))


def test_join_broadcasts_sanitized_name(machine, notifier):
    sid = asyncio.run(machine.create_session("Alice")).session.id
    participant, snapshot = asyncio.run(machine.join_session(sid, "<Bob>"))

    assert participant.name == "&lt;Bob&gt;"
    assert len(snapshot.participants) == 2
    assert notifier.events[-1] == (f"session:{sid}", "participant_joined", {"name": "&lt;Bob&gt;"})


def test_start_quiz_is_repeatable(machine, notifier):
    sid = asyncio.run(machine.create_session("Alice")).session.id
    asyncio.run(machine.start_quiz(sid))
    snapshot = asyncio.run(machine.start_quiz(sid))

    assert snapshot.session.status == SessionStatus.COLLECTING
    assert notifier.kinds() == ["questions_ready", "questions_ready"]


def test_start_quiz_unknown_session(machine):
    with pytest.raises(NotFoundError):
        asyncio.run(machine.start_quiz("missing1"))


def test_results_generated_when_last_participant_submits(machine, completion, notifier):
    sid, (alice, bob, cara) = _three_person_session(machine)

    first = asyncio.run(machine.submit_answers(sid, alice, ANSWERS))
    second = asyncio.run(machine.submit_answers(sid, bob, ANSWERS))
    assert not first.all_completed and not second.all_completed

    snapshot = machine.get_session(sid)
    assert snapshot.session.status == SessionStatus.COLLECTING
    assert snapshot.session.results is None
    assert snapshot.completed_count == 2

    last = asyncio.run(machine.submit_answers(sid, cara, ANSWERS))
    assert last.all_completed and last.triggered_results

    snapshot = machine.get_results(sid)
    assert snapshot.session.status == SessionStatus.COMPLETE
    assert snapshot.results is not None
    assert len(completion.calls) == 1
    assert notifier.kinds()[-2:] == ["answer_submitted", "results_ready"]


def test_concurrent_last_submissions_synthesize_once(machine, completion, notifier):
    sid, (alice, bob, cara) = _three_person_session(machine)
    asyncio.run(machine.submit_answers(sid, alice, ANSWERS))

    async def race():
        return await asyncio.gather(
            machine.submit_answers(sid, bob, ANSWERS),
            machine.submit_answers(sid, cara, ANSWERS),
        )

    outcomes = asyncio.run(race())

    assert all(o.all_completed for o in outcomes)
    assert sum(o.triggered_results for o in outcomes) == 1
    assert len(completion.calls) == 1
    assert notifier.kinds().count("results_ready") == 1
    # the loser still sees the winner's results
    assert all(o.results is not None for o in outcomes)


def test_submit_for_participant_of_other_session(machine):
    sid_a = asyncio.run(machine.create_session("Alice")).session.id
    other = asyncio.run(machine.create_session("Zed"))
    with pytest.raises(NotFoundError):
        asyncio.run(machine.submit_answers(sid_a, other.participants[0].id, ANSWERS))


def test_late_joiner_blocks_completion(machine, completion):
    sid, (alice, bob, cara) = _three_person_session(machine)
    for pid in (alice, bob):
        asyncio.run(machine.submit_answers(sid, pid, ANSWERS))
    dave, _ = asyncio.run(machine.join_session(sid, "Dave"))

    outcome = asyncio.run(machine.submit_answers(sid, cara, ANSWERS))
    assert not outcome.all_completed
    assert completion.calls == []

    outcome = asyncio.run(machine.submit_answers(sid, dave.id, ANSWERS))
    assert outcome.all_completed
    assert len(completion.calls) == 1


def test_close_early_requires_a_submission(machine):
    sid, _ = _three_person_session(machine)
    with pytest.raises(ConflictError):
        asyncio.run(machine.close_early(sid))
    assert machine.get_session(sid).session.status == SessionStatus.COLLECTING


def test_close_early_unknown_session(machine):
    with pytest.raises(NotFoundError):
        asyncio.run(machine.close_early("missing1"))


def test_close_early_uses_completed_subset_and_can_rerun(machine, completion, notifier):
    sid, (alice, bob, cara) = _three_person_session(machine)
    asyncio.run(machine.submit_answers(sid, alice, ANSWERS))

    first = asyncio.run(machine.close_early(sid))
    assert first is not None
    prompt = completion.calls[0][0]["content"]
    assert "Alice" in prompt and "Bob" not in prompt

    asyncio.run(machine.submit_answers(sid, bob, ANSWERS))
    completion.text = None
    second = asyncio.run(machine.close_early(sid))

    snapshot = machine.get_results(sid)
    assert snapshot.session.status == SessionStatus.COMPLETE
    assert snapshot.results == second
    assert sorted(w.name for w in second.individual_writeups) == ["Alice", "Bob"]
    assert notifier.kinds().count("results_ready") == 2


def test_submit_after_close_does_not_resynthesize(machine, completion):
    sid, (alice, bob, cara) = _three_person_session(machine)
    asyncio.run(machine.submit_answers(sid, alice, ANSWERS))
    asyncio.run(machine.close_early(sid))
    asyncio.run(machine.submit_answers(sid, bob, ANSWERS))
    outcome = asyncio.run(machine.submit_answers(sid, cara, ANSWERS))

    assert outcome.all_completed and not outcome.triggered_results
    assert len(completion.calls) == 1


def test_status_never_moves_backwards(machine):
    sid, (alice, bob, cara) = _three_person_session(machine)
    seen = [machine.get_session(sid).session.status]

    async def steps():
        await machine.submit_answers(sid, alice, ANSWERS)
        seen.append(machine.get_session(sid).session.status)
        for pid in (bob, cara):
            await machine.submit_answers(sid, pid, ANSWERS)
            seen.append(machine.get_session(sid).session.status)
        await machine.start_quiz(sid)
        seen.append(machine.get_session(sid).session.status)
        await machine.join_session(sid, "Eve")
        seen.append(machine.get_session(sid).session.status)
        await machine.close_early(sid)
        seen.append(machine.get_session(sid).session.status)

    asyncio.run(steps())
    ranks = [STATUS_ORDER.index(s) for s in seen]
    assert ranks == sorted(ranks)
    assert seen[-1] == SessionStatus.COMPLETE


def test_get_unknown_session(machine):
    with pytest.raises(NotFoundError):
        machine.get_session("missing1")
    with pytest.raises(NotFoundError):
        machine.get_results("missing1")
