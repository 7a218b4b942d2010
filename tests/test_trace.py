"""Tests for epicalib.fitting.trace: append-only optimization log."""

import numpy as np
import pytest

from epicalib.fitting.trace import OptimizationTrace


def _filled_trace():
    trace = OptimizationTrace()
    trace.record({"beta": 0.3, "rho": 0.5}, 40.0)
    trace.record({"beta": 0.4, "rho": 0.5}, 25.0)
    trace.record({"beta": 0.5, "rho": 0.6}, 31.0)
    return trace


class TestOptimizationTrace:
    def test_iterations_numbered_in_order(self):
        trace = _filled_trace()
        assert [r.iteration for r in trace] == [0, 1, 2]
        assert len(trace) == 3

    def test_records_are_snapshots(self):
        params = {"beta": 0.3}
        trace = OptimizationTrace()
        trace.record(params, 1.0)
        params["beta"] = 99.0
        assert trace.records[0].params["beta"] == 0.3

    def test_past_entries_immutable(self):
        trace = _filled_trace()
        with pytest.raises(TypeError):
            trace.records[0].params["beta"] = 1.0
        with pytest.raises(AttributeError):
            trace.records[0].cost = 0.0

    def test_records_returns_copy(self):
        trace = _filled_trace()
        records = trace.records
        trace.record({"beta": 0.1, "rho": 0.1}, 5.0)
        assert len(records) == 3

    def test_freeze(self):
        trace = _filled_trace().freeze()
        assert trace.frozen
        with pytest.raises(RuntimeError):
            trace.record({"beta": 0.1}, 1.0)

    def test_best(self):
        assert _filled_trace().best().cost == 25.0
        assert OptimizationTrace().best() is None

    def test_dataframe(self):
        df = _filled_trace().to_dataframe()
        assert list(df.columns) == ["iteration", "cost", "beta", "rho", "best_cost"]
        np.testing.assert_array_equal(df["best_cost"], [40.0, 25.0, 25.0])

    def test_empty_dataframe(self):
        df = OptimizationTrace().to_dataframe()
        assert df.empty
