# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import re
from collections.abc import Iterable
from dataclasses import dataclass

from markupsafe import Markup, escape

from .mistakes import GrammarIssue
from .schemas import PronunciationIssue
from .textdiff import diff_fragments, diff_segments, guess_mistake_label


@dataclass(frozen=True)
class IssueSegment:
    text: str
    issue: PronunciationIssue | None


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text)


def render_editor_diff(original: str, corrected: str) -> Markup:
    ''' Corrected text with each edit highlighted and the replaced words shown after it. '''
    parts = []
    for seg in diff_segments(original, corrected):
        if seg.kind == 'same':
            parts.append(Markup("{} ").format(seg.corrected))
            continue
        replaced = Markup("")
        if seg.original and seg.original != seg.corrected:
            replaced = Markup('<span class="diff_original">{}</span>').format(seg.original)
        parts.append(Markup('<span class="diff_edit"><span class="diff_corrected">{}</span>{}</span> ').format(seg.corrected, replaced))
    return Markup("").join(parts)


def build_issue_segments(target_text: str, issues: Iterable[PronunciationIssue]) -> list[IssueSegment]:
    """ Split target_text into plain and flagged segments using each issue's
    character offsets.  Overlapping issues are clipped to start after the
    previous one; spans that end up empty are dropped.
    """
    segments = []
    cursor = 0
    for issue in sorted(issues, key=lambda i: i.start_index):
        start = max(issue.start_index, cursor)
        end = min(issue.end_index, len(target_text))
        if start >= end:
            continue
        if cursor < start:
            segments.append(IssueSegment(target_text[cursor:start], None))
        segments.append(IssueSegment(target_text[start:end], issue))
        cursor = end
    if cursor < len(target_text):
        segments.append(IssueSegment(target_text[cursor:], None))
    return segments


def render_highlighted_sentence(target_text: str, issues: Iterable[PronunciationIssue]) -> Markup:
    parts = []
    for seg in build_issue_segments(target_text, issues):
        if seg.issue is None:
            parts.append(escape(seg.text))
        else:
            parts.append(Markup('<span class="pronunciation_issue severity_{}" title="{}" tabindex="0">{}</span>').format(
                seg.issue.severity, seg.issue.hint, seg.text
            ))
    return Markup("").join(parts)


def render_corrections(text: str, issues: Iterable[GrammarIssue]) -> Markup:
    ''' Mark up the learner's text with each changed fragment of each issue. '''
    # HTML-escape user inputs now, since we will be adding HTML soon and cannot escape after that
    marked = str(escape(text))

    # Create paragraphs / maintain paragraph breaks
    marked = f"<p>{marked}</p>"
    marked = re.sub("\n\n+", "</p><p>", marked)

    # normalize all remaining whitespace so we can be sure to match correctly
    marked = normalize_whitespace(marked)

    # escaped+normalized original fragment -> list of (label, corrected fragment)
    fragment_notes: dict[str, list[tuple[str, str]]] = {}
    for issue in issues:
        for pair in diff_fragments(issue.sentence, issue.corrected_sentence):
            if not pair.original_fragment.strip():
                continue  # pure insertion: nothing in the learner's text to mark
            key = str(escape(normalize_whitespace(pair.original_fragment.strip())))
            label = guess_mistake_label(issue.mistake_type, pair.original_fragment, pair.corrected_fragment)
            notes = fragment_notes.setdefault(key, [])
            if (label, pair.corrected_fragment) not in notes:
                notes.append((label, pair.corrected_fragment))

    if not fragment_notes:
        return Markup(marked)

    # longest first, so a fragment wins over any shorter fragment it contains
    keys = sorted(fragment_notes, key=len, reverse=True)
    # match whole words only, never inside the <p> tags added above;
    # and a space matches *any* whitespace
    escaped_keys = [re.sub(r"\\ ", r"\\s+", re.escape(key)) for key in keys]
    pattern = r"(?<![\w<])(?<!</)(" + r"|".join(escaped_keys) + r")(?![\w>])"

    def replacement(match: re.Match[str]) -> str:
        matched_text = match.group(0)
        notes = fragment_notes.get(normalize_whitespace(matched_text), [])
        details = Markup("").join(
            Markup('<span class="item">- {}: {}</span>').format(label, corrected or "(remove)")
            for label, corrected in notes
        )
        return Markup('<span class="writing_error" tabindex="0">{}<span class="writing_error_details">{}</span></span>').format(
            Markup(matched_text), details
        )

    return Markup(re.sub(pattern, replacement, marked))
