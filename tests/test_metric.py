import numpy as np
import pandas as pd
import pytest

from envmodel_tools.utils.metric import (
    Metric,
    MaxValue,
    ThresholdYear,
    compute_lowflowduration,
    compute_lowflowduration_all,
    first_crossing_time,
    max_stock,
    nash_sutcliffe_efficiency,
    normalized_nash_sutcliffe_efficiency,
)


trajectory = pd.DataFrame({
    "time": [0.0, 1.0, 2.0, 3.0],
    "C": [60.0, 40.0, 50.0, 55.0],
})


def test_max_stock_includes_initial_point():
    assert max_stock(trajectory["time"], trajectory["C"]) == 60.0


def test_first_crossing_time_is_strict():
    t = [0.0, 1.0, 2.0, 3.0]
    assert first_crossing_time(t, [10, 50, 60, 70], 50) == 2.0
    assert first_crossing_time(t, [10, 50, 60, 70], 5) == 0.0


def test_first_crossing_time_never_reached():
    assert first_crossing_time([0.0, 10.0, 20.0], [1, 2, 3], 50) == 20.0


def test_metric_from_name():
    assert isinstance(Metric.from_name("max_growth", "C"), MaxValue)
    assert isinstance(Metric.from_name("Threshold_Year", "C"), ThresholdYear)

    with pytest.raises(ValueError):
        Metric.from_name("min_growth", "C")


def test_threshold_year_uses_reporting_threshold():
    metric = Metric.from_name("threshold_year", "C")
    assert metric.compute(trajectory) == 0.0
    assert metric.compute(trajectory, reporting_threshold=52.0) == 0.0
    assert metric.compute(trajectory, reporting_threshold=100.0) == 3.0

    rising = pd.DataFrame({"time": [0.0, 1.0, 2.0], "C": [10.0, 45.0, 51.0]})
    assert metric.compute(rising) == 2.0
    assert metric.compute(rising, reporting_threshold=40.0) == 1.0


def test_nse():
    obs = np.array([1.0, 2.0, 3.0, 4.0])
    assert nash_sutcliffe_efficiency(obs, obs) == pytest.approx(1.0)
    assert nash_sutcliffe_efficiency(np.full(4, obs.mean()), obs) == pytest.approx(0.0)
    assert normalized_nash_sutcliffe_efficiency(obs, obs) == pytest.approx(1.0)
    assert normalized_nash_sutcliffe_efficiency(np.full(4, obs.mean()), obs) == pytest.approx(0.5)


# Two water years of four days; counts of days under 0.25:
# observed [2, 1], modelled [1, 3]
wy = [1, 1, 1, 1, 2, 2, 2, 2]
obs = [0.1, 0.1, 1.0, 1.0, 0.1, 1.0, 1.0, 1.0]
mod = [0.1, 1.0, 1.0, 1.0, 0.1, 0.1, 0.1, 1.0]


def test_lowflowduration():
    res = compute_lowflowduration(mod, obs, wy)
    assert res["annual_low_flow_days_err"] == pytest.approx(0.5)
    assert res["annual_low_flow_days_cor"] == pytest.approx(-1.0)


def test_lowflowduration_all():
    res = compute_lowflowduration_all(mod, obs, wy)
    assert res["low_flow_days_err"] == pytest.approx(1.5)
    assert res["low_flow_days_cor"] == pytest.approx(-1.0)
    # Error score is max(0, 1 - 1.5 / 1) = 0
    assert res["combined_metric"] == pytest.approx(-0.5)

    weighted = compute_lowflowduration_all(mod, obs, wy, wts=(1, 3))
    assert weighted["combined_metric"] == pytest.approx(-0.75)


def test_lowflowduration_all_perfect_match():
    res = compute_lowflowduration_all(obs, obs, wy)
    assert res["low_flow_days_err"] == 0.0
    assert res["low_flow_days_cor"] == pytest.approx(1.0)
    assert res["combined_metric"] == pytest.approx(1.0)


def test_lowflowduration_all_constant_counts():
    res = compute_lowflowduration_all([1.0] * 8, [1.0] * 8, wy)
    assert res["low_flow_days_err"] == 0.0
    assert np.isnan(res["low_flow_days_cor"])
    assert np.isnan(res["combined_metric"])
