# tests/preprocessing/test_selectors.py
import pandas as pd
import pytest

from atlas_workflows.preprocessing.selectors import (
    all_nominal,
    all_numeric,
    contains,
    describe_selection,
    ends_with,
    everything,
    matches,
    one_of,
    resolve_columns,
    starts_with,
)


@pytest.fixture
def frame():
    return pd.DataFrame(
        {
            "num_a": [1.0, 2.0],
            "num_b": [3, 4],
            "cat_a": ["x", "y"],
            "flag": [True, False],
        }
    )


def test_selectors(frame):
    assert resolve_columns(everything(), frame) == ["num_a", "num_b", "cat_a", "flag"]
    assert resolve_columns(all_numeric(), frame) == ["num_a", "num_b"]
    assert resolve_columns(all_nominal(), frame) == ["cat_a", "flag"]
    assert resolve_columns(starts_with("num"), frame) == ["num_a", "num_b"]
    assert resolve_columns(ends_with("_a"), frame) == ["num_a", "cat_a"]
    assert resolve_columns(contains("la"), frame) == ["flag"]
    assert resolve_columns(matches(r"^num_\w$"), frame) == ["num_a", "num_b"]
    assert resolve_columns(one_of("flag", "num_b"), frame) == ["num_b", "flag"]


def test_mixed_list_is_deduplicated_in_order(frame):
    assert resolve_columns(["cat_a", all_numeric(), "num_a"], frame) == ["cat_a", "num_a", "num_b"]


def test_exclude_applies_to_selectors(frame):
    assert resolve_columns(everything(), frame, exclude=["flag"]) == ["num_a", "num_b", "cat_a"]


def test_errors(frame):
    with pytest.raises(ValueError, match="Unknown column"):
        resolve_columns(["nope"], frame)
    with pytest.raises(ValueError):
        resolve_columns("flag", frame, exclude=["flag"])
    with pytest.raises(TypeError):
        resolve_columns(42, frame)


def test_describe_selection():
    assert describe_selection(["a", starts_with("x")]) == ["a", "starts_with('x')"]
