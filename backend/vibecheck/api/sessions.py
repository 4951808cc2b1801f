# vibecheck/api/sessions.py
from fastapi import APIRouter, Depends
from .dependencies import get_state_machine, limit_session_creation
from ..schemas.session import (
    AnswersSubmit,
    CloseResponse,
    ParticipantAnswers,
    QuizStarted,
    ResultsResponse,
    SessionCreate,
    SessionCreated,
    SessionDetail,
    SessionJoin,
    SessionJoined,
    SessionRecord,
    SubmitResponse,
)
from ..services.session_machine import SessionStateMachine

router = APIRouter()

@router.post("",
             response_model=SessionCreated,
             dependencies=[Depends(limit_session_creation)],
             summary="Create Session",
             description="""
             Start a new party session. The host is enrolled as the first participant.

             **Returns**: session id, the share link and the host's participant id
             """)
async def create_session(
    body: SessionCreate,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    snapshot = await machine.create_session(body.host_name)
    session_id = snapshot.session.id
    return SessionCreated(
        id=session_id,
        link=f"/session/{session_id}",
        participant_id=snapshot.participants[0].id
    )

@router.get("/{session_id}", response_model=SessionDetail)
def get_session(
    session_id: str,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    """
    Get a session with its roster
    Includes how many participants have submitted
    """
    return SessionDetail.from_snapshot(machine.get_session(session_id))

@router.post("/{session_id}/join", response_model=SessionJoined)
async def join_session(
    session_id: str,
    body: SessionJoin,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    """Add a participant; works in any session status"""
    participant, snapshot = await machine.join_session(session_id, body.name)
    return SessionJoined(id=participant.id, session=SessionDetail.from_snapshot(snapshot))

@router.post("/{session_id}/generate", response_model=QuizStarted)
async def start_quiz(
    session_id: str,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    """Open the quiz to everyone in the session"""
    await machine.start_quiz(session_id)
    return QuizStarted()

@router.post("/{session_id}/submit", response_model=SubmitResponse)
async def submit_answers(
    session_id: str,
    body: AnswersSubmit,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    """
    Record a participant's votes
    The submission that completes the roster also generates the results
    """
    outcome = await machine.submit_answers(session_id, body.participant_id, body.answers)
    return SubmitResponse(all_completed=outcome.all_completed)

@router.get("/{session_id}/results", response_model=ResultsResponse)
def get_results(
    session_id: str,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    snapshot = machine.get_results(session_id)
    return ResultsResponse(
        session=SessionRecord.model_validate(snapshot.session),
        participants=[ParticipantAnswers.model_validate(p) for p in snapshot.participants],
        results=snapshot.results
    )

@router.post("/{session_id}/close", response_model=CloseResponse)
async def close_session(
    session_id: str,
    machine: SessionStateMachine = Depends(get_state_machine)
):
    """Generate results now from everyone who has submitted"""
    results = await machine.close_early(session_id)
    return CloseResponse(results=results)
