from __future__ import annotations

from pydiffy._logfmt import summarize_for_log


def test_summarize_truncates_long_strings() -> None:
    summarized = summarize_for_log({"value": "x" * 600}, max_string=10)

    assert summarized["value"].startswith("x" * 10)
    assert "<truncated>" in summarized["value"]


def test_summarize_bytes_and_long_sequences() -> None:
    summarized = summarize_for_log({"blob": b"\x00" * 8, "items": list(range(25))})

    assert summarized["blob"] == "<bytes:8b>"
    assert summarized["items"][:3] == [0, 1, 2]
    assert summarized["items"][-1] == "<5 more>"


def test_summarize_objects_use_bounded_repr() -> None:
    class Opaque:
        def __repr__(self) -> str:
            return "O" * 50

    assert summarize_for_log(Opaque(), max_string=5) == "OOOOO…<truncated>"
