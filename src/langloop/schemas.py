# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

"""Pydantic schemas for structured model responses.

Everything a model returns as JSON is validated here before the rest of the
package sees it.  Anything that does not match raises InvalidResponse.
"""

import json
import re
from typing import Any, Literal, Self, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .mistakes import GrammarIssue

MAX_PRONUNCIATION_ISSUES = 5

IssueType: TypeAlias = Literal["substitution", "deletion", "insertion", "mispronunciation", "stress"]
Severity: TypeAlias = Literal["low", "medium", "high"]

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)


class InvalidResponse(Exception):
    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw


def _whole_number(value: Any) -> Any:
    # JSON numbers like 85.0 count as integers; 85.5 (or "85") still fails strict validation
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        strict=True,
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class GrammarIssueModel(_ResponseModel):
    sentence: str
    corrected_sentence: str = Field(alias="correctedSentence")
    mistake_type: str = Field(alias="mistakeType")
    explanation: str

    def to_issue(self) -> GrammarIssue:
        return GrammarIssue(
            sentence=self.sentence,
            corrected_sentence=self.corrected_sentence,
            mistake_type=self.mistake_type,
            explanation=self.explanation,
        )


class GrammarResponse(_ResponseModel):
    issues: list[GrammarIssueModel]


class PronunciationIssue(_ResponseModel):
    word: str
    start_index: int = Field(alias="startIndex", ge=0)
    end_index: int = Field(alias="endIndex", ge=0)
    type: IssueType
    hint: str
    severity: Severity

    @field_validator('start_index', 'end_index', mode='before')
    @classmethod
    def whole_number_indices(cls, value: Any) -> Any:
        return _whole_number(value)

    @model_validator(mode='after')
    def check_span(self) -> Self:
        if self.end_index < self.start_index:
            raise ValueError("endIndex must not be before startIndex")
        return self


class PronunciationAnalysis(_ResponseModel):
    target_text: str = Field(alias="targetText")
    transcript: str
    issues: list[PronunciationIssue]
    tags: list[str] = Field(default_factory=list)
    fluency_score: int = Field(alias="fluencyScore", ge=0, le=100)

    @field_validator('fluency_score', mode='before')
    @classmethod
    def whole_number_score(cls, value: Any) -> Any:
        return _whole_number(value)

    @field_validator('issues')
    @classmethod
    def limit_issues(cls, issues: list[PronunciationIssue]) -> list[PronunciationIssue]:
        # models occasionally ignore the "at most 5" instruction
        return issues[:MAX_PRONUNCIATION_ISSUES]


def load_json_object(raw: str) -> dict[str, Any]:
    """ Parse model output as a JSON object, tolerating a markdown code fence
    around it.

    Raises:
      InvalidResponse: if the text is not a JSON object.
    """
    text = raw.strip()
    if match := _FENCE_RE.match(text):
        text = match.group(1).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidResponse(f"Response is not valid JSON: {e}", raw) from e

    if not isinstance(parsed, dict):
        raise InvalidResponse("Response is not a JSON object.", raw)

    return parsed


def parse_grammar_response(raw: str) -> list[GrammarIssue]:
    data = load_json_object(raw)
    try:
        response = GrammarResponse.model_validate(data)
    except ValidationError as e:
        raise InvalidResponse(f"Grammar analysis response is malformed: {e.error_count()} error(s)", raw) from e
    return [item.to_issue() for item in response.issues]


def parse_pronunciation_analysis(raw: str) -> PronunciationAnalysis:
    data = load_json_object(raw)
    try:
        return PronunciationAnalysis.model_validate(data)
    except ValidationError as e:
        raise InvalidResponse(f"Pronunciation analysis response is malformed: {e.error_count()} error(s)", raw) from e
