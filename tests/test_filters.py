from __future__ import annotations

import pytest

from wifi_heatmap_server.filters import median_dbm


def test_odd_length_returns_middle_value() -> None:
    assert median_dbm([-70, -65, -999]) == -70
    assert median_dbm([-40]) == -40


def test_even_length_truncates_toward_zero() -> None:
    # (-81 + -80) / 2 = -80.5 -> -80, not floor division's -81
    assert median_dbm([-81, -80]) == -80
    assert median_dbm([-80, -81, -60, -999]) == -80


@pytest.mark.parametrize(
    "values, expected",
    [
        ([1, 2], 1),
        ([-3, 2], 0),
        ([-50, -50, -50, -50], -50),
    ],
)
def test_even_length_examples(values: list[int], expected: int) -> None:
    assert median_dbm(values) == expected


def test_input_order_is_irrelevant_and_not_mutated() -> None:
    values = [-60, -90, -70]
    assert median_dbm(values) == -70
    assert values == [-60, -90, -70]


def test_empty_returns_zero() -> None:
    assert median_dbm([]) == 0


def test_returns_plain_int() -> None:
    assert type(median_dbm([-1, -2, -3])) is int
