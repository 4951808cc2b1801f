# vibecheck/services/session_machine.py
"""
Session state machine

    lobby --start_quiz--> collecting --last submit / close_early--> complete

Status only moves forward. The step that turns "everyone has submitted"
into "results exist" runs under a per-session lock and ends in a
conditional write, so synthesis happens once per session even when
several last submissions race. close_early is an explicit override and
may redo results at any time.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import asyncio
import json
import logging
import weakref

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.participant import Participant
from ..models.session import Session as SessionModel, SessionStatus
from ..schemas.results import Answers, RecommendationResult
from ..schemas.session import load_results
from ..websocket.manager import SessionEvent, session_channel
from .sanitizer import sanitize_name
from .vote_aggregator import all_completed, collect_votes, completed_count

logger = logging.getLogger(__name__)


@dataclass
class SessionSnapshot:
    """A session read together with its current roster"""
    session: SessionModel
    participants: List[Participant] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return completed_count(self.participants)

    @property
    def results(self) -> Optional[RecommendationResult]:
        return load_results(self.session.results)


@dataclass
class SubmissionOutcome:
    all_completed: bool
    # True only for the submission that produced the results
    triggered_results: bool = False
    results: Optional[RecommendationResult] = None


class SessionStateMachine:
    """Drives session and participant transitions and broadcasts each one"""

    def __init__(self, store, synthesizer, notifier):
        self.store = store
        self.synthesizer = synthesizer
        self.notifier = notifier
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        # Entries disappear once no task holds or waits on the lock
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _require_session(self, session_id: str) -> SessionModel:
        session = self.store.get_session(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    async def _publish(self, session_id: str, event: SessionEvent, data: dict):
        await self.notifier.publish(session_channel(session_id), event, data)

    async def create_session(self, host_name) -> SessionSnapshot:
        name = sanitize_name(host_name)
        if not name:
            raise ValidationError("Name is required")

        session, host = self.store.create_session(name)
        logger.info(f"Created session {session.id} for host {name}")
        return SessionSnapshot(session=session, participants=[host])

    async def join_session(self, session_id: str, name) -> Tuple[Participant, SessionSnapshot]:
        clean_name = sanitize_name(name)
        if not clean_name:
            raise ValidationError("Name is required")
        session = self._require_session(session_id)

        # Joining is allowed in any status, including mid-quiz
        participant = self.store.add_participant(session_id, clean_name)
        logger.info(f"{clean_name} joined session {session_id} ({session.status.value})")

        await self._publish(session_id, SessionEvent.PARTICIPANT_JOINED, {"name": clean_name})
        return participant, SessionSnapshot(session, self.store.list_participants(session_id))

    async def start_quiz(self, session_id: str) -> SessionSnapshot:
        """lobby -> collecting; repeated calls just re-announce the quiz"""
        self._require_session(session_id)
        if self.store.mark_collecting(session_id):
            logger.info(f"Session {session_id} is now collecting answers")

        await self._publish(session_id, SessionEvent.QUESTIONS_READY, {"mode": "movies"})
        return self.get_session(session_id)

    async def submit_answers(self, session_id: str, participant_id: str, answers: Answers) -> SubmissionOutcome:
        participant = self.store.get_participant(session_id, participant_id)
        if participant is None:
            raise NotFoundError("Participant not found")

        answers_json = json.dumps(
            {movie_id: record.model_dump(mode="json", by_alias=True) for movie_id, record in answers.items()}
        )
        self.store.record_answers(participant_id, answers_json)
        logger.info(f"{participant.name} submitted {len(answers)} votes in session {session_id}")

        await self._publish(session_id, SessionEvent.ANSWER_SUBMITTED, {"participantName": participant.name})

        async with self._lock_for(session_id):
            session = self._require_session(session_id)
            roster = self.store.list_participants(session_id)
            everyone_done = all_completed(roster)

            if not everyone_done:
                return SubmissionOutcome(all_completed=False)

            if session.status == SessionStatus.COMPLETE:
                # Another submission already produced the results
                return SubmissionOutcome(all_completed=True, results=load_results(session.results))

            results = await self.synthesizer.synthesize(collect_votes(roster))
            if not self.store.save_results(session_id, results.model_dump_json(), only_if_incomplete=True):
                logger.warning(f"Session {session_id} was completed elsewhere, keeping existing results")
                latest = self.store.get_session(session_id)
                return SubmissionOutcome(
                    all_completed=True,
                    results=load_results(latest.results) if latest else None
                )

        logger.info(f"Session {session_id} complete, results generated")
        await self._publish(session_id, SessionEvent.RESULTS_READY, {"results": results.model_dump(mode="json")})
        return SubmissionOutcome(all_completed=True, triggered_results=True, results=results)

    async def close_early(self, session_id: str) -> RecommendationResult:
        """Synthesize from whoever has submitted so far, overwriting any results"""
        self._require_session(session_id)

        async with self._lock_for(session_id):
            finished = self.store.list_participants(session_id, completed_only=True)
            if not finished:
                raise ConflictError("No completed participants")

            results = await self.synthesizer.synthesize(collect_votes(finished))
            if not self.store.save_results(session_id, results.model_dump_json()):
                # Purged by retention while synthesizing
                raise NotFoundError("Session not found")

        logger.info(f"Session {session_id} closed early with {len(finished)} completed participants")
        await self._publish(session_id, SessionEvent.RESULTS_READY, {"results": results.model_dump(mode="json")})
        return results

    def get_session(self, session_id: str) -> SessionSnapshot:
        session = self._require_session(session_id)
        return SessionSnapshot(session, self.store.list_participants(session_id))

    def get_results(self, session_id: str) -> SessionSnapshot:
        return self.get_session(session_id)
