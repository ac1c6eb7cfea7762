# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import pytest

from langloop.textdiff import (
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


def _rebuild(original: str, corrected: str, pairs: list[FragmentPair], side: str) -> list[str]:
    """ Rebuild one side's token list from the untouched common prefix and
    suffix, the words that match inside the changed window, and that side's
    fragments (one per run of differing positions), all in order.
    """
    o = tokenize(original)
    c = tokenize(corrected)

    start = 0
    while start < len(o) and start < len(c) and o[start] == c[start]:
        start += 1
    o_end = len(o) - 1
    c_end = len(c) - 1
    while o_end >= start and c_end >= start and o[o_end] == c[c_end]:
        o_end -= 1
        c_end -= 1

    tokens, end = (o, o_end) if side == 'original' else (c, c_end)
    fragments = iter([p.original_fragment if side == 'original' else p.corrected_fragment for p in pairs])

    middle: list[str] = []
    in_run = False
    for i in range(start, max(o_end, c_end) + 1):
        ow = o[i] if i <= o_end else None
        cw = c[i] if i <= c_end else None
        if ow == cw:
            assert ow is not None
            middle.append(ow)
            in_run = False
        elif not in_run:
            middle += tokenize(next(fragments))
            in_run = True

    assert next(fragments, None) is None, "more fragments than runs"
    return tokens[:start] + middle + tokens[end + 1:]


def test_tokenize() -> None:
    assert tokenize("  Hello,\tworld!\n how  are you ") == ["Hello,", "world!", "how", "are", "you"]
    assert tokenize("") == []
    assert tokenize(" \n\t ") == []


@pytest.mark.parametrize('text', ["Hello world.", "I go to school", "x", "   ", "\n"])
def test_diff_identity(text: str) -> None:
    assert diff_fragments(text, text) == [FragmentPair(text, text)]


def test_diff_whitespace_only_change_returns_full_strings() -> None:
    assert diff_fragments("I  go\nhome", "I go home") == [FragmentPair("I  go\nhome", "I go home")]


def test_diff_empty() -> None:
    assert diff_fragments("", "") == []


@pytest.mark.parametrize(('original', 'corrected'), [
    ("   ", ""),
    ("", "\n"),
    (" ", "\t\t"),
])
def test_diff_blank_inputs_return_full_strings(original: str, corrected: str) -> None:
    # no words on either side: the token sequences are identical
    assert diff_fragments(original, corrected) == [FragmentPair(original, corrected)]


def test_diff_boundary_insertion() -> None:
    assert diff_fragments("I go school", "I go to school") == [FragmentPair("", "to")]


def test_diff_insertion_at_start() -> None:
    assert diff_fragments("cat sat on the mat", "The cat sat on the mat") == [FragmentPair("", "The")]


def test_diff_deletion_at_end() -> None:
    assert diff_fragments("I went home yesterday", "I went home") == [FragmentPair("yesterday", "")]


def test_diff_single_substitution() -> None:
    assert diff_fragments("She go to school", "She goes to school") == [FragmentPair("go", "goes")]


def test_diff_punctuation_stays_attached() -> None:
    assert diff_fragments("Its a nice day.", "It's a nice day.") == [FragmentPair("Its", "It's")]


def test_diff_multiple_runs() -> None:
    pairs = diff_fragments("I has a apple and a orange", "I have an apple and an orange")
    assert pairs == [
        FragmentPair("has a", "have an"),
        FragmentPair("a", "an"),
    ]


def test_diff_reordered_words_is_not_minimal() -> None:
    # positional pairing: a reordering shows up as one large change
    pairs = diff_fragments("yesterday I went", "I went yesterday")
    assert pairs == [FragmentPair("yesterday I went", "I went yesterday")]


def test_diff_is_case_sensitive() -> None:
    assert diff_fragments("i like it", "I like it") == [FragmentPair("i", "I")]


def test_diff_completely_new_sentence() -> None:
    assert diff_fragments("", "Hello there") == [FragmentPair("", "Hello there")]
    assert diff_fragments("Hello there", "") == [FragmentPair("Hello there", "")]


@pytest.mark.parametrize(('original', 'corrected'), [
    ("I has a apple and a orange", "I have an apple and an orange"),
    ("She go to school every days", "She goes to school every day"),
    ("I go school", "I go to school"),
    ("I went home yesterday", "I went home"),
    ("He don't know nothing about it", "He doesn't know anything about it"),
])
def test_diff_reconstruction(original: str, corrected: str) -> None:
    ''' Prefix, fragments, and suffix rebuild each side's tokens exactly. '''
    pairs = diff_fragments(original, corrected)
    assert _rebuild(original, corrected, pairs, 'original') == tokenize(original)
    assert _rebuild(original, corrected, pairs, 'corrected') == tokenize(corrected)


@pytest.mark.parametrize(('original', 'corrected', 'prefix', 'suffix'), [
    ("She go to school", "She goes to school", ["She"], ["to", "school"]),
    ("I go school", "I go to school", ["I", "go"], ["school"]),
    ("cat sat", "The cat sat", [], ["cat", "sat"]),
])
def test_diff_reconstruction_single_run(original: str, corrected: str, prefix: list[str], suffix: list[str]) -> None:
    [pair] = diff_fragments(original, corrected)
    assert prefix + tokenize(pair.original_fragment) + suffix == tokenize(original)
    assert prefix + tokenize(pair.corrected_fragment) + suffix == tokenize(corrected)


def test_diff_segments_substitution() -> None:
    assert diff_segments("She go home", "She goes home") == [
        DiffSegment('same', "She", "She"),
        DiffSegment('edit', "go", "goes"),
        DiffSegment('same', "home", "home"),
    ]


def test_diff_segments_lockstep_resync() -> None:
    # both cursors advance together, so an insertion swallows the following word
    assert diff_segments("I go school", "I go to school") == [
        DiffSegment('same', "I", "I"),
        DiffSegment('same', "go", "go"),
        DiffSegment('edit', "school", "to school"),
    ]


def test_diff_segments_empty() -> None:
    assert diff_segments("", "") == []
    assert diff_segments("  ", "x") == [DiffSegment('edit', "", "x")]


@pytest.mark.parametrize(('a', 'b', 'expected'), [
    ("kitten", "sitting", 3),
    ("", "abc", 3),
    ("abc", "", 3),
    ("ABC", "abc", 0),
    ("flaw", "lawn", 2),
    ("teh", "the", 2),
    ("go", "went", 4),
])
def test_edit_distance(a: str, b: str, expected: int) -> None:
    assert edit_distance(a, b) == expected
    assert edit_distance(b, a) == expected


@pytest.mark.parametrize(('mistake_type', 'original', 'corrected', 'expected'), [
    ("Other", "teh", "the", "Spelling"),
    ("Tense", "go", "went", "Tense"),
    ("typo", "go", "went", "Spelling"),
    ("SPELLING mistake", "a b", "c d", "Spelling"),
    ("Tense", "Go", "go", "Tense"),               # distance 0 is not a spelling fix
    ("Agreement", "he go", "he goes", "Agreement"),  # more than one word
    ("", "dog", "cats", "Other"),
    ("   ", "", "to", "Other"),
    ("  Articles ", "the", "a", "Articles"),
])
def test_guess_mistake_label(mistake_type: str, original: str, corrected: str, expected: str) -> None:
    assert guess_mistake_label(mistake_type, original, corrected) == expected


def test_split_into_sentences() -> None:
    chunks = split_into_sentences("Hello there. How are you?  Fine")
    assert chunks == [
        SentenceChunk("Hello there. ", "s-0"),
        SentenceChunk("How are you?  ", "s-1"),
        SentenceChunk("Fine", "s-2"),
    ]


def test_split_into_sentences_ellipsis_and_newlines() -> None:
    chunks = split_into_sentences("Wait… what!\nOk.")
    assert [c.text for c in chunks] == ["Wait… ", "what!\n", "Ok."]


def test_split_into_sentences_no_boundary() -> None:
    assert split_into_sentences("no punctuation here") == [SentenceChunk("no punctuation here", "s-0")]


def test_split_into_sentences_empty() -> None:
    assert split_into_sentences("") == []


@pytest.mark.parametrize('text', [
    "Hello there. How are you?  Fine",
    "Hmm... ok!!  Really?\n\nYes.\n",
    "  leading space. trailing text   ",
    "\n\n",
    "¿Qué tal? Muy bien… gracias.",
])
def test_split_into_sentences_round_trip(text: str) -> None:
    chunks = split_into_sentences(text)
    assert "".join(c.text for c in chunks) == text
    assert [c.key for c in chunks] == [f"s-{i}" for i in range(len(chunks))]
