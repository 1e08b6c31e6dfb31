import pytest

from textprops.tagging import RankerInconsistencyError, Tag, merge_hypotheses
from textprops.tagging.hypotheses import top_hypotheses, validate_hypotheses


def test_merge_inserts_missing_best_tag_with_full_confidence():
    merged = merge_hypotheses(Tag("ProperNoun"), {Tag("Noun"): 0.62, Tag("Adjective"): 0.11})

    assert merged == {"Noun": 0.62, "Adjective": 0.11, "ProperNoun": 1.0}


def test_merge_keeps_existing_weight_of_ranked_best_tag():
    merged = merge_hypotheses(Tag("Noun"), {Tag("Noun"): 0.4, Tag("Verb"): 0.3})

    assert merged == {"Noun": 0.4, "Verb": 0.3}


def test_merge_without_best_tag_returns_copy():
    hypotheses = {Tag("Noun"): 0.4}

    merged = merge_hypotheses(None, hypotheses)

    assert merged == hypotheses
    assert merged is not hypotheses


def test_merge_exceeds_limit_by_at_most_one():
    hypotheses = {Tag("A"): 0.5, Tag("B"): 0.3, Tag("C"): 0.1}

    merged = merge_hypotheses(Tag("D"), hypotheses)

    assert len(merged) == 4
    assert merged["D"] == 1.0


def test_validate_rejects_duplicate_keys():
    with pytest.raises(RankerInconsistencyError):
        validate_hypotheses([("Noun", 0.5), ("Noun", 0.2)], subject="token")


def test_validate_rejects_probability_outside_unit_interval():
    with pytest.raises(RankerInconsistencyError):
        validate_hypotheses({"Noun": 1.5}, subject="token")


def test_validate_rejects_more_entries_than_limit():
    with pytest.raises(RankerInconsistencyError):
        validate_hypotheses({"A": 0.1, "B": 0.2, "C": 0.3}, subject="token", limit=2)


def test_top_hypotheses_keeps_most_probable_entries():
    assert top_hypotheses({"a": 0.1, "b": 0.7, "c": 0.2}, 2) == {"b": 0.7, "c": 0.2}
