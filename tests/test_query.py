"""Tests for chime.query and chime.fuzzy."""

import pytest

from chime.fuzzy import GAP_PENALTY, Match, fuzzy_score
from chime.history import HistoryStore
from chime.query import ITEM_ACTIONS, PROVIDER_NAME, query


@pytest.fixture
def store(clock, add):
    store = HistoryStore(clock=clock)
    add(store, "Build finished", body="all green", app_name="ci", app_icon="ci-icon")
    add(store, "New mail", body="from alice", app_name="mail")
    add(store, "Battery low", body="10% left", app_name="")
    return store


# --- fuzzy_score ---


def test_fuzzy_exact_substring():
    match = fuzzy_score("mail", "New mail from alice", exact=True)
    assert match == Match(100, [4, 5, 6, 7], 4)


def test_fuzzy_exact_miss():
    assert fuzzy_score("mial", "New mail", exact=True).score == 0


def test_fuzzy_is_case_insensitive():
    assert fuzzy_score("BUILD", "build finished").score == 100


def test_fuzzy_gaps_cost_points():
    """Each gap between matched runs costs GAP_PENALTY."""
    match = fuzzy_score("ntfy", "notify")
    assert match.score == 100 - 2 * GAP_PENALTY
    assert match.positions == [0, 2, 4, 5]
    assert match.start == 0


def test_fuzzy_no_match():
    assert fuzzy_score("zzz", "notify") == Match(0, [], -1)
    assert fuzzy_score("", "notify").score == 0


# --- query ---


def test_empty_query_newest_first(store):
    """An empty query lists everything newest first with decreasing scores."""
    items = query(store, "")

    assert [i.identifier for i in items] == ["3", "2", "1"]
    scores = [i.score for i in items]
    assert scores == sorted(scores, reverse=True)
    assert len(set(scores)) == len(scores)


def test_item_fields(store):
    items = {i.identifier: i for i in query(store, "", icon="fallback")}

    build = items["1"]
    assert build.text == "Build finished"
    assert build.subtext == "[ci] all green"
    assert build.icon == "ci-icon"
    assert build.provider == PROVIDER_NAME
    assert build.actions == ITEM_ACTIONS
    assert build.preview_type == "text"
    assert build.preview.startswith("Build finished\n\nall green\n\nApp: ci\nTime: ")

    battery = items["3"]
    assert battery.subtext == "10% left"
    assert battery.icon == "fallback"


def test_item_actions_are_not_shared(store):
    first, second = query(store, "")[:2]
    first.actions.append("extra")
    assert "extra" not in second.actions


def test_query_matches_summary_body_and_app(store):
    assert [i.identifier for i in query(store, "alice", exact=True)] == ["2"]
    assert [i.identifier for i in query(store, "ci", exact=True)] == ["1"]


def test_query_sets_fuzzy_info(store):
    (item,) = query(store, "green", exact=True)
    assert item.score == 100
    assert item.fuzzy.field_name == "text"
    assert item.fuzzy.start == len("Build finished all ")
    assert item.fuzzy.positions[0] == item.fuzzy.start


def test_min_score_filters(store):
    """Only scores strictly above min_score are kept."""
    scores = {"Build finished": 50, "New mail": 30, "Battery low": 0}

    def scorer(q, text, exact):
        for summary, score in scores.items():
            if text.startswith(summary):
                return Match(score, [], -1)
        raise AssertionError(text)

    kept = query(store, "x", min_score=30, scorer=scorer)
    assert [i.text for i in kept] == ["Build finished"]

    kept = query(store, "x", min_score=0, scorer=scorer)
    assert [i.text for i in kept] == ["Build finished", "New mail"]


def test_matches_keep_history_order(store):
    """Scored results are not re-sorted; ranking is up to the caller."""

    def scorer(q, text, exact):
        return Match(10 if text.startswith("Build") else 90, [], -1)

    items = query(store, "x", scorer=scorer)
    assert [i.identifier for i in items] == ["1", "2", "3"]
    assert [i.score for i in items] == [10, 90, 90]


def test_scorer_gets_exact_flag(store):
    seen = []

    def scorer(q, text, exact):
        seen.append(exact)
        return Match(0, [], -1)

    query(store, "x", exact=True, scorer=scorer)
    assert seen == [True, True, True]
