# vibecheck/services/session_store.py
from sqlalchemy import select
from sqlalchemy.engine import Engine
from typing import List, Optional, Tuple
import logging

from ..database import build_session_factory, init_db
from ..models.session import Session as SessionModel, SessionStatus
from ..models.participant import Participant

logger = logging.getLogger(__name__)

class SessionStore:
    """
    Durable storage for sessions and participants.

    Every call opens its own short-lived ORM session, so the store can be
    shared by all concurrent requests. Only status, results, answers and
    completed are ever changed after insert.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = build_session_factory(engine)

    def init_schema(self):
        """Create tables and indexes if they do not exist"""
        init_db(self.engine)

    def create_session(self, host_name: str) -> Tuple[SessionModel, Participant]:
        """Insert a session in lobby with the host enrolled as its first participant"""
        with self._session_factory() as db:
            session = SessionModel(host_name=host_name, status=SessionStatus.LOBBY)
            db.add(session)
            db.flush()

            host = Participant(session_id=session.id, name=host_name)
            db.add(host)
            db.commit()
            return session, host

    def get_session(self, session_id: str) -> Optional[SessionModel]:
        with self._session_factory() as db:
            return db.query(SessionModel).filter(SessionModel.id == session_id).first()

    def add_participant(self, session_id: str, name: str) -> Participant:
        with self._session_factory() as db:
            participant = Participant(session_id=session_id, name=name)
            db.add(participant)
            db.commit()
            return participant

    def get_participant(self, session_id: str, participant_id: str) -> Optional[Participant]:
        """Look up a participant only if it belongs to the given session"""
        with self._session_factory() as db:
            return db.query(Participant).filter(
                Participant.id == participant_id,
                Participant.session_id == session_id
            ).first()

    def list_participants(self, session_id: str, completed_only: bool = False) -> List[Participant]:
        """Roster of a session in join order"""
        with self._session_factory() as db:
            query = db.query(Participant).filter(Participant.session_id == session_id)
            if completed_only:
                query = query.filter(Participant.completed.is_(True))
            return query.order_by(Participant.created_at).all()

    def record_answers(self, participant_id: str, answers_json: str) -> bool:
        """Store a participant's votes and mark them completed"""
        with self._session_factory() as db:
            updated = db.query(Participant).filter(Participant.id == participant_id).update(
                {Participant.answers: answers_json, Participant.completed: True},
                synchronize_session=False
            )
            db.commit()
            return updated == 1

    def mark_collecting(self, session_id: str) -> bool:
        """Move lobby -> collecting; returns False if the session already moved on"""
        with self._session_factory() as db:
            updated = db.query(SessionModel).filter(
                SessionModel.id == session_id,
                SessionModel.status == SessionStatus.LOBBY
            ).update({SessionModel.status: SessionStatus.COLLECTING}, synchronize_session=False)
            db.commit()
            return updated == 1

    def save_results(self, session_id: str, results_json: str, only_if_incomplete: bool = False) -> bool:
        """
        Write results and set status to complete in one statement.

        With only_if_incomplete the write is conditional on the session not
        being complete yet, so at most one writer wins.
        """
        with self._session_factory() as db:
            query = db.query(SessionModel).filter(SessionModel.id == session_id)
            if only_if_incomplete:
                query = query.filter(SessionModel.status != SessionStatus.COMPLETE)
            updated = query.update(
                {SessionModel.results: results_json, SessionModel.status: SessionStatus.COMPLETE},
                synchronize_session=False
            )
            db.commit()
            return updated == 1

    def purge_older_than(self, cutoff: int) -> int:
        """Delete sessions created before cutoff (epoch seconds) and their participants"""
        with self._session_factory() as db:
            old_sessions = select(SessionModel.id).where(SessionModel.created_at < cutoff)
            db.query(Participant).filter(
                Participant.session_id.in_(old_sessions)
            ).delete(synchronize_session=False)
            deleted = db.query(SessionModel).filter(
                SessionModel.created_at < cutoff
            ).delete(synchronize_session=False)
            db.commit()
            return deleted
