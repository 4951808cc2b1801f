# vibecheck/services/vote_aggregator.py
from dataclasses import dataclass
from typing import Dict, List, Sequence
import logging

from ..models.participant import Participant
from ..schemas.results import Answers
from ..schemas.session import load_answers

logger = logging.getLogger(__name__)

@dataclass
class ParticipantVotes:
    """Synthesis input for one person"""
    name: str
    answers: Answers

    def to_prompt_dict(self) -> Dict:
        return {
            "name": self.name,
            "answers": {
                movie_id: record.model_dump(mode="json", by_alias=True)
                for movie_id, record in self.answers.items()
            },
        }

def parse_answers(participant: Participant) -> Answers:
    """Stored answers for a participant; malformed or missing blobs count as no votes"""
    answers = load_answers(participant.answers)
    if answers is None:
        if participant.answers is not None:
            logger.warning(f"Discarding malformed answers for participant {participant.id}")
        return {}
    return answers

def collect_votes(participants: Sequence[Participant]) -> List[ParticipantVotes]:
    """Votes of every completed participant, in roster order"""
    return [
        ParticipantVotes(name=p.name, answers=parse_answers(p))
        for p in participants
        if p.completed
    ]

def completed_count(participants: Sequence[Participant]) -> int:
    return sum(1 for p in participants if p.completed)

def all_completed(participants: Sequence[Participant]) -> bool:
    """True when the roster is non-empty and everyone has submitted"""
    return bool(participants) and all(p.completed for p in participants)
