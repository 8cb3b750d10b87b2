"""Unit tests for the fuzzy matcher."""

from collections import namedtuple

import pytest

from krabvault.core.search import match, rank

Item = namedtuple("Item", "label")


def _labels(items):
    return [i.label for i in items]


def _rank(query, labels):
    return _labels(rank(query, [Item(l) for l in labels], key=lambda i: i.label))


def test_subsequence_matches():
    assert match("gh", "github.com") is not None
    assert match("gtb", "github.com") is not None


def test_order_matters():
    assert match("hg", "github.com") is None


def test_case_insensitive():
    assert match("GH", "github.com") is not None
    assert match("gh", "GitHub.com") is not None


def test_positions_reported():
    m = match("gh", "github.com")
    assert m.positions == (0, 3)


def test_best_alignment_is_chosen():
    # 'abc' appears widely scattered first and as a word later
    m = match("abc", "a" + "x" * 9 + "b" + "x" * 9 + "c abc")
    assert m.positions == (22, 23, 24)


def test_github_ranks_above_algh():
    assert _rank("gh", ["algh.net", "github.com"]) == ["github.com", "algh.net"]


def test_contiguous_beats_scattered_at_same_start():
    assert _rank("git", ["gxixt.com", "git.io"]) == ["git.io", "gxixt.com"]


def test_earlier_start_wins():
    assert _rank("bank", ["mybank.com", "bank.com"]) == ["bank.com", "mybank.com"]


def test_non_matching_excluded():
    assert _rank("gh", ["email.com", "github.com", "bank.com"]) == ["github.com"]


def test_no_match_at_all():
    assert _rank("zzq", ["email.com", "github.com"]) == []


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_returns_all_in_order(query):
    labels = ["c.com", "a.com", "b.com"]
    assert _rank(query, labels) == labels


def test_ties_keep_original_order():
    assert _rank("a", ["a.com", "a.net", "a.org"]) == ["a.com", "a.net", "a.org"]


def test_rank_defaults_to_str_key():
    assert rank("ba", ["foo", "bar", "baz"]) == ["bar", "baz"]


def test_rank_returns_new_list():
    data = ["x", "y"]
    out = rank("", data)
    assert out == data
    assert out is not data
