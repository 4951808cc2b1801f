# vibecheck/services/synthesizer.py
"""
Recommendation synthesis

Turns the group's swipe votes into a RecommendationResult by asking the
completion service for a JSON payload. The model may wrap its JSON in
prose, so the first balanced {...} span is pulled out before decoding.
Whatever goes wrong, synthesize() hands back a usable result.
"""

from pydantic import ValidationError
from typing import List, Optional, Sequence
import json
import logging

from ..schemas.results import IndividualWriteup, RecommendationResult
from .vote_aggregator import ParticipantVotes

logger = logging.getLogger(__name__)

UNAVAILABLE_SUMMARY = "Could not generate recommendations. Check server configuration."
UNPARSABLE_SUMMARY = "Recommendations could not be read from the analysis. Try closing the vote again."

USER_INSTRUCTION = "Analyze the swipe data and recommend movies."

SYSTEM_PROMPT_TEMPLATE = """You analyze movie swipe data and recommend films for a group.

Each participant has swiped on movies with votes:
- "love" = must watch
- "like" = interested
- "pass" = not for me
- "havent_seen" = neutral

Participants: {participants}

Based on patterns in what they loved vs passed, recommend 5 movies they should watch together.

GUIDELINES:
- Find patterns (genre, era, tone, director style)
- Recommend films that match the overlap in tastes
- DON'T just recommend movies they already loved
- Be adventurous - include indie, foreign, documentaries, cult classics
- Each recommendation needs a specific reason tied to their patterns

Output JSON:
{{
  "group_summary": "1-2 sentences about the group's movie taste",
  "recommendations": [
    {{"item": "Movie Title (Year)", "reason": "why it fits their taste", "rank": 1}}
  ],
  "individual_writeups": [
    {{
      "name": "Person's name",
      "taste_summary": "Their movie vibe in one sentence",
      "personal_recs": ["Movie 1", "Movie 2"]
    }}
  ]
}}"""


def build_messages(votes: Sequence[ParticipantVotes]) -> List[dict]:
    participants = json.dumps([v.to_prompt_dict() for v in votes], ensure_ascii=False)
    return [
        {"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(participants=participants)},
        {"role": "user", "content": USER_INSTRUCTION},
    ]


def extract_json_object(text: str) -> Optional[str]:
    """
    First top-level {...} span in text, or None.

    Braces inside JSON string literals are ignored. An unbalanced span
    yields None.
    """
    if not text:
        return None
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_result(text: Optional[str]) -> Optional[RecommendationResult]:
    """Decode a completion into a result; None when no valid payload is found"""
    span = extract_json_object(text or "")
    if span is None:
        return None
    try:
        result = RecommendationResult.model_validate_json(span)
    except ValidationError as e:
        logger.warning(f"Completion JSON did not match the result schema: {e.error_count()} errors")
        return None
    result.recommendations.sort(key=lambda r: r.rank)
    return result


def fallback_result(votes: Sequence[ParticipantVotes], summary: str = UNAVAILABLE_SUMMARY) -> RecommendationResult:
    """Degraded result: no picks, one placeholder writeup per participant"""
    return RecommendationResult(
        group_summary=summary,
        recommendations=[],
        individual_writeups=[
            IndividualWriteup(name=v.name, taste_summary="Analysis unavailable", personal_recs=[])
            for v in votes
        ],
    )


class RecommendationSynthesizer:
    """Asks the completion service for group recommendations, with a fallback"""

    def __init__(self, completion_client, max_tokens: int = 2000):
        self.completion_client = completion_client
        self.max_tokens = max_tokens

    async def synthesize(self, votes: Sequence[ParticipantVotes]) -> RecommendationResult:
        messages = build_messages(votes)
        logger.info(f"Synthesizing recommendations for {len(votes)} participants")

        try:
            text = await self.completion_client.complete(messages, max_tokens=self.max_tokens)
        except Exception:
            logger.exception("Completion call failed")
            text = None

        if text is None:
            return fallback_result(votes)

        result = parse_result(text)
        if result is None:
            logger.error("Failed to parse recommendations from completion output")
            return fallback_result(votes, UNPARSABLE_SUMMARY)
        return result
