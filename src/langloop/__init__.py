# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

from .base import Workspace, create_workspace
from .textdiff import (
    DiffSegment,
    FragmentPair,
    SentenceChunk,
    diff_fragments,
    diff_segments,
    edit_distance,
    guess_mistake_label,
    split_into_sentences,
    tokenize,
)

__all__ = [
    "DiffSegment",
    "FragmentPair",
    "SentenceChunk",
    "Workspace",
    "create_workspace",
    "diff_fragments",
    "diff_segments",
    "edit_distance",
    "guess_mistake_label",
    "split_into_sentences",
    "tokenize",
]
