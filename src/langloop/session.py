# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from functools import partial
from typing import Literal, TypeAlias

from .llm import LLM
from .mistakes import DocumentStore, GrammarIssue, MistakeLog
from .openai_client import ProviderError
from .schemas import InvalidResponse
from .textdiff import diff_fragments, guess_mistake_label
from .tutor import check_grammar, rewrite

logger = logging.getLogger(__name__)

AnalysisStatus: TypeAlias = Literal["idle", "analyzing", "error", "done"]
GrammarChecker: TypeAlias = Callable[[str], Awaitable[list[GrammarIssue]]]
Rewriter: TypeAlias = Callable[[str], Awaitable[str]]

UNEXPECTED_ERROR_MESSAGE = "Something went wrong while checking your writing.  Please try again."


@dataclass(frozen=True)
class AnalysisState:
    status: AnalysisStatus
    message: str | None = None  # set only for "error"


IDLE = AnalysisState("idle")
ANALYZING = AnalysisState("analyzing")
DONE = AnalysisState("done")


@dataclass(frozen=True)
class Suggestion:
    issue: GrammarIssue
    original_fragment: str
    corrected_fragment: str
    label: str


class Debouncer:
    ''' A restartable one-shot timer, polled by its owner.

    touch() (re)starts the countdown; ready() returns True exactly once after
    the delay has elapsed since the last touch().
    '''

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic):
        self._delay = delay
        self._clock = clock
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def touch(self) -> None:
        self._deadline = self._clock() + self._delay

    def cancel(self) -> None:
        self._deadline = None

    def ready(self) -> bool:
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        return True


def merge_issues(existing: list[GrammarIssue], new: list[GrammarIssue]) -> list[GrammarIssue]:
    ''' Append new issues, dropping any whose (sentence, correction, explanation) is already present. '''
    seen = set()
    merged = []
    for issue in [*existing, *new]:
        key = issue.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        merged.append(issue)
    return merged


class WritingSession:
    """ Pause-based grammar checking for a document being written.

    The caller owns the timing: call edit() on every change, and analyze()
    once the learner pauses (see Debouncer).  State moves idle -> analyzing ->
    done or error; blank content returns it to idle, even if an analysis is
    still in flight (its result is then dropped).

    Only text that changed since the last successful analysis is checked.
    When the learner has only appended to the document, just the new tail is
    sent to the model.
    """

    def __init__(self, check: GrammarChecker, mistakes: MistakeLog, document: DocumentStore, *, rewriter: Rewriter | None = None):
        self._check = check
        self._rewriter = rewriter
        self._mistakes = mistakes
        self._document = document

        self.content = document.load()
        self.state = IDLE
        self.last_analyzed_text = ""
        self.issues: list[GrammarIssue] = []
        self._rewrites: dict[str, str] = {}  # issue sentence -> natural rewrite
        self._resets = 0  # bumped whenever blank content clears the analysis

    @classmethod
    def with_llm(cls, llm: LLM, mistakes: MistakeLog, document: DocumentStore) -> "WritingSession":
        return cls(partial(check_grammar, llm), mistakes, document, rewriter=partial(rewrite, llm))

    def edit(self, content: str) -> None:
        self.content = content
        self._document.save(content)

        if not content.strip():
            self.state = IDLE
            self.last_analyzed_text = ""
            self.issues = []
            self._resets += 1

    @property
    def needs_analysis(self) -> bool:
        return bool(self.content.strip()) and self.content != self.last_analyzed_text

    def _text_to_check(self) -> str:
        last = self.last_analyzed_text
        if last and self.content.startswith(last):
            return self.content[len(last):]
        return self.content

    async def analyze_async(self) -> AnalysisState:
        if not self.needs_analysis:
            return self.state

        # snapshot: the learner may keep typing while the model works
        content = self.content
        resets = self._resets
        text = self._text_to_check()
        self.state = ANALYZING

        if not text.strip():
            self.state = DONE
            self.last_analyzed_text = content
            return self.state

        try:
            new_issues = await self._check(text)
        except (InvalidResponse, ProviderError) as e:
            logger.warning("Grammar analysis failed: %s", e)
            return self._finish_with_error(resets, str(e))
        except Exception:
            logger.exception("Unexpected error during grammar analysis.")
            return self._finish_with_error(resets, UNEXPECTED_ERROR_MESSAGE)

        if self._resets != resets:
            # the document was cleared while the model worked; its result is stale
            logger.debug("Discarding analysis of cleared text.")
            return self.state

        if new_issues:
            self.issues = merge_issues(self.issues, new_issues)
            self._mistakes.append(new_issues)

        self.state = DONE
        self.last_analyzed_text = content
        return self.state

    def _finish_with_error(self, resets: int, message: str) -> AnalysisState:
        if self._resets == resets:
            self.state = AnalysisState("error", message)
        return self.state

    def analyze(self) -> AnalysisState:
        return asyncio.run(self.analyze_async())

    async def rewrites_async(self) -> dict[str, str]:
        """ A more natural rewrite of each issue's corrected sentence, keyed by
        the learner's sentence.  Each sentence is rewritten at most once;
        failures are logged and retried on the next call.
        """
        if self._rewriter is None:
            return {}

        for issue in self.issues:
            key = issue.sentence
            if not key or key in self._rewrites:
                continue
            try:
                rewritten = await self._rewriter(issue.corrected_sentence or issue.sentence)
            except (ProviderError, ValueError) as e:
                logger.warning("Rewrite not available: %s", e)
                continue
            if rewritten.strip():
                self._rewrites[key] = rewritten.strip()

        return {issue.sentence: self._rewrites[issue.sentence] for issue in self.issues if issue.sentence in self._rewrites}

    def rewrites(self) -> dict[str, str]:
        return asyncio.run(self.rewrites_async())

    def suggestions(self) -> Iterator[Suggestion]:
        ''' Each changed fragment of each issue, labeled for display. '''
        for issue in self.issues:
            for pair in diff_fragments(issue.sentence, issue.corrected_sentence):
                yield Suggestion(
                    issue=issue,
                    original_fragment=pair.original_fragment,
                    corrected_fragment=pair.corrected_fragment,
                    label=guess_mistake_label(issue.mistake_type, pair.original_fragment, pair.corrected_fragment),
                )
