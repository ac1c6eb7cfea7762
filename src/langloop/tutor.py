# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

""" Tutor operations: each sends learner text (or audio) to the model and
returns a checked result.

Free-text operations fall back to the learner's own text when the model
returns nothing.  Structured operations validate the model's JSON and raise
InvalidResponse when it does not match.
"""

import logging

from . import prompts
from .llm import LLM
from .mistakes import GrammarIssue
from .schemas import PronunciationAnalysis, parse_grammar_response, parse_pronunciation_analysis

logger = logging.getLogger(__name__)

DEFAULT_EXPLANATION = "Word choice or grammar improved."


async def check_grammar(llm: LLM, text: str) -> list[GrammarIssue]:
    ''' Find the most helpful grammar issues in text.

    Raises:
      ValueError: if text is blank.
      InvalidResponse: if the model's output does not match the issues schema.
      ProviderError: if the model provider fails.
    '''
    if not text.strip():
        raise ValueError("Missing or invalid text")

    _response, response_txt = await llm.get_completion(
        messages=prompts.make_grammar_prompt(text),
        extra_args={
            'response_format': {'type': 'json_object'},
        },
    )
    issues = parse_grammar_response(response_txt)
    logger.debug("Grammar check found %d issue(s).", len(issues))
    return issues


async def proofread(llm: LLM, text: str) -> str:
    if not text.strip():
        raise ValueError("Missing or invalid text")

    _response, response_txt = await llm.get_completion(
        messages=prompts.make_proofread_prompt(text),
        extra_args={'max_completion_tokens': 2000},
    )
    return response_txt or text


async def rewrite(llm: LLM, text: str) -> str:
    ''' A more natural, native-sounding version of text. '''
    if not text.strip():
        raise ValueError("Missing or invalid text")

    _response, response_txt = await llm.get_completion(
        messages=prompts.make_rewrite_prompt(text),
        extra_args={'temperature': 0.5, 'max_completion_tokens': 300},
    )
    return response_txt or text


async def explain_change(llm: LLM, original: str, corrected: str) -> str:
    if not original.strip() or not corrected.strip():
        raise ValueError("Missing or invalid original/corrected")

    _response, response_txt = await llm.get_completion(
        messages=prompts.make_explain_prompt(original, corrected),
        extra_args={'temperature': 0.3, 'max_completion_tokens': 150},
    )
    return response_txt or DEFAULT_EXPLANATION


async def analyze_pronunciation(llm: LLM, target_text: str, audio: bytes, filename: str = "recording.webm") -> PronunciationAnalysis:
    """ Transcribe a recording of the learner reading target_text, then ask the
    model to compare the two.

    Raises:
      ValueError: if target_text is blank or audio is empty.
      InvalidResponse: if the comparison does not match the analysis schema.
      ProviderError: if transcription or comparison fails at the provider.
    """
    if not target_text.strip():
        raise ValueError("Missing targetText")
    if not audio:
        raise ValueError("Missing or empty audio file")

    transcript = await llm.transcribe(audio, filename)
    logger.debug("Transcribed %d bytes of audio to %d characters.", len(audio), len(transcript))

    _response, response_txt = await llm.get_completion(
        messages=prompts.make_pronunciation_prompt(target_text, transcript),
        extra_args={
            'response_format': {'type': 'json_object'},
            'max_completion_tokens': 800,
        },
    )
    return parse_pronunciation_analysis(response_txt)


async def speak(llm: LLM, text: str) -> bytes:
    if not text.strip():
        raise ValueError("Missing text")
    return await llm.synthesize_speech(text.strip())
