"""Tests for sink handles."""

from __future__ import annotations

import dataclasses

import pytest

from volknobs.domain.model import DefaultSink, ProcessSink, is_process_sink


class TestSinkHandles:
    def test_default_sinks_are_equal(self) -> None:
        assert DefaultSink() == DefaultSink()
        assert str(DefaultSink()) == "default"

    def test_process_sink_equality_by_pid(self) -> None:
        assert ProcessSink(4821) == ProcessSink(4821)
        assert ProcessSink(4821) != ProcessSink(4822)
        assert ProcessSink(4821) != DefaultSink()

    def test_process_sink_str(self) -> None:
        assert str(ProcessSink(4821)) == "pid:4821"

    @pytest.mark.parametrize("pid", [0, -1])
    def test_rejects_non_positive_pid(self, pid: int) -> None:
        with pytest.raises(ValueError):
            ProcessSink(pid)

    @pytest.mark.parametrize("pid", ["4821", 4821.0, True])
    def test_rejects_non_int_pid(self, pid: object) -> None:
        with pytest.raises(TypeError):
            ProcessSink(pid)  # type: ignore[arg-type]

    def test_handles_are_immutable(self) -> None:
        handle = ProcessSink(4821)
        with pytest.raises(dataclasses.FrozenInstanceError):
            handle.pid = 1  # type: ignore[misc]

    def test_is_process_sink(self) -> None:
        assert is_process_sink(ProcessSink(4821))
        assert not is_process_sink(DefaultSink())
