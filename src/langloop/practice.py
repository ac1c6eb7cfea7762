# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, TypeAlias

from .mistakes import MistakeCategory, StoredMistake

ExerciseKind: TypeAlias = Literal["fill_blank", "choose_correct"]
CategoryStatus: TypeAlias = Literal["Weak", "Improving", "Stable"]

BLANK = "_____"
DISTRACTORS = ("the", "a")
MAX_OPTIONS = 4


@dataclass(frozen=True)
class CategorySummary:
    category: MistakeCategory
    count: int

    @property
    def status(self) -> CategoryStatus:
        return status_from_count(self.count)


@dataclass(frozen=True)
class Exercise:
    kind: ExerciseKind
    prompt: str
    answer: str
    explanation: str
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnswerResult:
    correct: bool
    feedback: str


def status_from_count(count: int) -> CategoryStatus:
    if count >= 10:
        return "Weak"
    if count >= 4:
        return "Improving"
    return "Stable"


def summarize_categories(mistakes: Iterable[StoredMistake]) -> list[CategorySummary]:
    ''' Mistake counts per category, most frequent first. '''
    counts = Counter(m.category for m in mistakes)
    return [CategorySummary(category, count) for category, count in counts.most_common()]


def mistakes_in_category(mistakes: Iterable[StoredMistake], category: MistakeCategory) -> list[StoredMistake]:
    return [m for m in mistakes if m.category == category]


def build_exercise(mistake: StoredMistake, kind: ExerciseKind) -> Exercise:
    """ Build a short exercise from one of the learner's own mistakes.

    The first corrected word that differs from the learner's word at the same
    position is blanked out (or the last word, if none differs).  For
    "choose_correct", the options are the answer, the learner's original word,
    and a couple of common distractors.
    """
    original_words = mistake.sentence.split()
    corrected_words = mistake.corrected_sentence.split()

    differing = next(
        (i for i, word in enumerate(corrected_words) if i < len(original_words) and original_words[i] != word),
        max(len(corrected_words) - 1, 0),
    )

    answer = corrected_words[differing] if corrected_words else ""
    prompt_words = list(corrected_words)
    if prompt_words:
        prompt_words[differing] = BLANK
    prompt = " ".join(prompt_words)

    if kind == "fill_blank":
        return Exercise(kind=kind, prompt=prompt, answer=answer, explanation=mistake.explanation)

    learner_word = original_words[differing] if differing < len(original_words) else ""
    candidates = [answer, learner_word, *DISTRACTORS]
    options = tuple(dict.fromkeys(c for c in candidates if c))[:MAX_OPTIONS]
    return Exercise(kind=kind, prompt=prompt, answer=answer, explanation=mistake.explanation, options=options)


def check_answer(exercise: Exercise, answer: str) -> AnswerResult:
    if answer.strip().lower() == exercise.answer.strip().lower():
        return AnswerResult(True, "Correct! Nice job using this pattern.")
    return AnswerResult(False, f'Not quite. The better choice here is "{exercise.answer}".')
