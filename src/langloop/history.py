# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import datetime
import json
import logging
import secrets
from dataclasses import dataclass

from pydantic import ValidationError

from .kvstore import KeyValueStore, WriteError
from .schemas import PronunciationAnalysis, PronunciationIssue

logger = logging.getLogger(__name__)

HISTORY_KEY = "pronunciation-history-v1"
DEFAULT_MAX_ATTEMPTS = 50


@dataclass(frozen=True)
class PronunciationAttempt:
    id: str
    created_at: str  # ISO 8601, UTC
    target_text: str
    transcript: str
    feedback: list[PronunciationIssue]
    top_tag: str

    def to_dict(self) -> dict[str, object]:
        return {
            'id': self.id,
            'createdAt': self.created_at,
            'targetText': self.target_text,
            'transcript': self.transcript,
            'feedback': [issue.model_dump(by_alias=True) for issue in self.feedback],
            'topTag': self.top_tag,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "PronunciationAttempt":
        feedback = data.get('feedback') or []
        if not isinstance(feedback, list):
            raise TypeError("feedback must be a list")
        return cls(
            id=str(data['id']),
            created_at=str(data['createdAt']),
            target_text=str(data['targetText']),
            transcript=str(data.get('transcript', "")),
            feedback=[PronunciationIssue.model_validate(item) for item in feedback],
            top_tag=str(data.get('topTag', "")),
        )


def attempt_from_analysis(analysis: PronunciationAnalysis) -> PronunciationAttempt:
    now = datetime.datetime.now(tz=datetime.UTC)
    return PronunciationAttempt(
        id=f"{int(now.timestamp() * 1000)}-{secrets.token_hex(3)}",
        created_at=now.isoformat(),
        target_text=analysis.target_text,
        transcript=analysis.transcript,
        feedback=list(analysis.issues),
        top_tag=analysis.tags[0] if analysis.tags else "",
    )


class AttemptHistory:
    ''' Most-recent-first list of pronunciation attempts, capped at max_attempts. '''

    def __init__(self, store: KeyValueStore, *, max_attempts: int = DEFAULT_MAX_ATTEMPTS, key: str = HISTORY_KEY):
        self._store = store
        self._max_attempts = max_attempts
        self._key = key

    def load(self) -> list[PronunciationAttempt]:
        raw = self._store.get(self._key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable attempt history.")
            return []
        if not isinstance(parsed, list):
            return []

        attempts = []
        for item in parsed:
            try:
                attempts.append(PronunciationAttempt.from_dict(item))
            except (KeyError, TypeError, AttributeError, ValidationError):
                logger.debug("Skipping malformed stored attempt: %r", item)
        return attempts

    def save(self, attempt: PronunciationAttempt) -> list[PronunciationAttempt]:
        updated = [attempt, *self.load()][:self._max_attempts]
        try:
            self._store.set(self._key, json.dumps([a.to_dict() for a in updated]))
        except WriteError as e:
            logger.warning("Attempt history not saved: %s", e)
        return updated
