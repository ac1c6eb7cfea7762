# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import datetime
import json
import logging
import secrets
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, get_args

from .kvstore import KeyValueStore, WriteError

logger = logging.getLogger(__name__)

MISTAKES_KEY = "language-loop-mistakes-v1"
DOCUMENT_KEY = "language-loop-document-v1"

MistakeCategory: TypeAlias = Literal["articles", "tense", "word_form", "prepositions", "agreement", "other"]
MISTAKE_CATEGORIES: tuple[MistakeCategory, ...] = get_args(MistakeCategory)


@dataclass(frozen=True)
class GrammarIssue:
    sentence: str
    corrected_sentence: str
    mistake_type: str
    explanation: str

    def dedupe_key(self) -> tuple[str, str, str]:
        return (self.sentence, self.corrected_sentence, self.explanation)


@dataclass(frozen=True)
class StoredMistake:
    id: str
    sentence: str
    corrected_sentence: str
    category: MistakeCategory
    explanation: str
    created_at: str  # ISO 8601, UTC

    def to_dict(self) -> dict[str, str]:
        # keys match the stored JSON format
        return {
            'id': self.id,
            'sentence': self.sentence,
            'correctedSentence': self.corrected_sentence,
            'category': self.category,
            'explanation': self.explanation,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredMistake":
        category = data.get('category')
        if category not in MISTAKE_CATEGORIES:
            category = 'other'
        return cls(
            id=str(data['id']),
            sentence=str(data['sentence']),
            corrected_sentence=str(data['correctedSentence']),
            category=category,
            explanation=str(data.get('explanation', "")),
            created_at=str(data.get('createdAt', "")),
        )


def normalize_category(label: str) -> MistakeCategory:
    ''' Map a free-form mistake type from the model onto a fixed category. '''
    lower = label.lower()
    if "article" in lower:
        return "articles"
    if "tense" in lower:
        return "tense"
    if "word form" in lower or "form" in lower:
        return "word_form"
    if "preposition" in lower:
        return "prepositions"
    if "agreement" in lower or "subject-verb" in lower:
        return "agreement"
    return "other"


def _new_id() -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def dedupe_mistakes(mistakes: Iterable[StoredMistake]) -> list[StoredMistake]:
    """ Keep the first of each (sentence, corrected sentence, category). """
    seen: set[tuple[str, str, str]] = set()
    result = []
    for m in mistakes:
        key = (m.sentence, m.corrected_sentence, m.category)
        if key in seen:
            continue
        seen.add(key)
        result.append(m)
    return result


class MistakeLog:
    """ Persistent list of grammar mistakes the learner has made.

    Storage is best-effort: unreadable data loads as an empty log, and
    failed writes are logged and otherwise ignored.
    """

    def __init__(self, store: KeyValueStore, key: str = MISTAKES_KEY):
        self._store = store
        self._key = key

    def load(self) -> list[StoredMistake]:
        raw = self._store.get(self._key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable mistake log.")
            return []
        if not isinstance(parsed, list):
            return []

        mistakes = []
        for item in parsed:
            try:
                mistakes.append(StoredMistake.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                logger.debug("Skipping malformed stored mistake: %r", item)
        return mistakes

    def append(self, issues: list[GrammarIssue]) -> list[StoredMistake]:
        ''' Record new issues, returning the full (deduplicated) log. '''
        if not issues:
            return self.load()

        now = datetime.datetime.now(tz=datetime.UTC).isoformat()
        new_items = [
            StoredMistake(
                id=_new_id(),
                sentence=issue.sentence,
                corrected_sentence=issue.corrected_sentence,
                category=normalize_category(issue.mistake_type),
                explanation=issue.explanation,
                created_at=now,
            )
            for issue in issues
        ]

        combined = dedupe_mistakes([*self.load(), *new_items])
        try:
            self._store.set(self._key, json.dumps([m.to_dict() for m in combined]))
        except WriteError as e:
            logger.warning("Mistake log not saved: %s", e)
        return combined


class DocumentStore:
    ''' The learner's in-progress document text. '''

    def __init__(self, store: KeyValueStore, key: str = DOCUMENT_KEY):
        self._store = store
        self._key = key

    def load(self) -> str:
        return self._store.get(self._key) or ""

    def save(self, text: str) -> None:
        try:
            self._store.set(self._key, text)
        except WriteError as e:
            logger.warning("Document not saved: %s", e)
