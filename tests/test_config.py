from __future__ import annotations

import pytest

from edificaflow.config import _env_int


@pytest.mark.parametrize(
    ("raw", "minimum", "expected"),
    [
        ("", 1, 50),
        ("30", 1, 30),
        ("abc", 1, 50),
        ("0", 1, 50),
        ("-1", 1, 50),
        ("0", 0, 0),
        ("-3", 0, 50),
    ],
)
def test_env_int_falls_back_below_minimum(
    monkeypatch: pytest.MonkeyPatch, raw: str, minimum: int, expected: int
) -> None:
    monkeypatch.setenv("EDIFICAFLOW_TEST_INT", raw)

    assert _env_int("EDIFICAFLOW_TEST_INT", 50, minimum=minimum) == expected
