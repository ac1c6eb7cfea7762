# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

""" Word-level alignment between a learner's sentence and its correction.

Used only for cosmetic highlighting, so nothing here raises on string input:
every path ends in some visible default.
"""

import re
from dataclasses import dataclass
from typing import Literal

SENTENCE_BOUNDARIES = frozenset(".!?…")

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class FragmentPair:
    original_fragment: str
    corrected_fragment: str


@dataclass(frozen=True)
class DiffSegment:
    kind: Literal['same', 'edit']
    original: str
    corrected: str


@dataclass(frozen=True)
class SentenceChunk:
    text: str
    key: str


def tokenize(text: str) -> list[str]:
    '''Split on runs of whitespace, discarding empty tokens.'''
    return [tok for tok in _WHITESPACE_RE.split(text) if tok]


def _join_slice(tokens: list[str], start: int, end: int) -> str:
    """ Join tokens[start:end] (end exclusive, already clamped by the caller)
    with single spaces.  An empty range gives "".
    """
    if start >= end:
        return ""
    return " ".join(tokens[start:end])


def diff_fragments(original: str, corrected: str) -> list[FragmentPair]:
    """ Find each contiguous run of changed words between original and corrected.

    After trimming the common prefix and suffix, the remaining window is
    scanned position by position; tokens are paired by index, not by an
    optimal alignment.  Sentences with reordered words can therefore give
    larger fragments than strictly necessary.

    Returns:
      One FragmentPair per run, in left-to-right order.  When the token
      sequences are identical, a single pair holding the two full input
      strings (whitespace included).  An empty list only when both inputs
      are empty strings.
    """
    o = tokenize(original)
    c = tokenize(corrected)

    if o == c:
        if not original and not corrected:
            return []
        return [FragmentPair(original, corrected)]

    start = 0
    while start < len(o) and start < len(c) and o[start] == c[start]:
        start += 1

    # inclusive end indices; the suffix trim stops before crossing the prefix
    o_end = len(o) - 1
    c_end = len(c) - 1
    while o_end >= start and c_end >= start and o[o_end] == c[c_end]:
        o_end -= 1
        c_end -= 1

    result: list[FragmentPair] = []

    def close_run(run_start: int, stop: int) -> None:
        o_frag = _join_slice(o, run_start, min(stop, o_end + 1)) if run_start <= o_end else ""
        c_frag = _join_slice(c, run_start, min(stop, c_end + 1)) if run_start <= c_end else ""
        if o_frag or c_frag:
            result.append(FragmentPair(o_frag, c_frag))

    run_start: int | None = None
    window_end = max(o_end, c_end)

    for i in range(start, window_end + 1):
        ow = o[i] if i <= o_end else None
        cw = c[i] if i <= c_end else None
        differs = ow != cw

        if differs and run_start is None:
            run_start = i
        elif not differs and run_start is not None:
            close_run(run_start, i)
            run_start = None

    if run_start is not None:
        close_run(run_start, window_end + 1)

    if not result:
        return [FragmentPair(original, corrected)]

    return result


def diff_segments(original: str, corrected: str) -> list[DiffSegment]:
    """ Greedy word diff for editor-style display: matching words become
    'same' segments, and each stretch up to the next matching pair of words
    becomes one 'edit' segment.  Both cursors advance together while
    searching, so a resync is only found at equal offsets into the edit.
    """
    o = tokenize(original)
    c = tokenize(corrected)
    segments: list[DiffSegment] = []
    i = 0
    j = 0

    while i < len(o) or j < len(c):
        if i < len(o) and j < len(c) and o[i] == c[j]:
            segments.append(DiffSegment('same', o[i], c[j]))
            i += 1
            j += 1
            continue

        o_start, c_start = i, j
        while i < len(o) or j < len(c):
            if i < len(o) and j < len(c) and o[i] == c[j]:
                break
            if i < len(o):
                i += 1
            if j < len(c):
                j += 1

        o_slice = " ".join(o[o_start:i])
        c_slice = " ".join(c[c_start:j])
        if o_slice or c_slice:
            segments.append(DiffSegment('edit', o_slice, c_slice))

    if not segments and (original.strip() or corrected.strip()):
        segments.append(DiffSegment('edit', original.strip(), corrected.strip()))

    return segments


def edit_distance(a: str, b: str) -> int:
    ''' Case-insensitive Levenshtein distance (unit costs, single rolling row). '''
    s = a.lower()
    t = b.lower()
    if not s:
        return len(t)
    if not t:
        return len(s)

    row = list(range(len(t) + 1))
    for i in range(1, len(s) + 1):
        prev = row[0]  # row[i-1][j-1]
        row[0] = i
        for j in range(1, len(t) + 1):
            temp = row[j]
            if s[i - 1] == t[j - 1]:
                row[j] = prev
            else:
                row[j] = min(prev + 1, row[j] + 1, row[j - 1] + 1)
            prev = temp
    return row[len(t)]


def guess_mistake_label(mistake_type: str, original_fragment: str, corrected_fragment: str) -> str:
    """ Label one changed fragment for display.

    A model-supplied label mentioning spelling or a typo wins outright.
    Otherwise a single-word change within two edits is treated as spelling,
    and anything else keeps the model's label ("Other" if it is blank).
    """
    base = (mistake_type or "").strip()
    lower = base.lower()
    if "spelling" in lower or "typo" in lower:
        return "Spelling"

    o_tokens = tokenize(original_fragment)
    c_tokens = tokenize(corrected_fragment)

    if len(o_tokens) == 1 and len(c_tokens) == 1:
        dist = edit_distance(o_tokens[0], c_tokens[0])
        if 1 <= dist <= 2:
            return "Spelling"

    return base or "Other"


def split_into_sentences(text: str) -> list[SentenceChunk]:
    """ Split text into sentence chunks that concatenate back to the input exactly.

    A chunk ends after a boundary character (. ! ? …) plus any whitespace
    that follows it; whatever remains after the last boundary is a final chunk.
    """
    if not text:
        return []

    chunks: list[SentenceChunk] = []
    chunk_start = 0
    i = 0
    n = len(text)

    while i < n:
        if text[i] in SENTENCE_BOUNDARIES:
            i += 1
            while i < n and text[i].isspace():
                i += 1
            chunks.append(SentenceChunk(text[chunk_start:i], f"s-{len(chunks)}"))
            chunk_start = i
        else:
            i += 1

    if chunk_start < n:
        chunks.append(SentenceChunk(text[chunk_start:], f"s-{len(chunks)}"))

    return chunks
