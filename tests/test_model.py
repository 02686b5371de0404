import numpy as np
import pandas as pd
import pytest
import matplotlib
from tqdm import tqdm

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from envmodel_tools.model import ForestGrowthModel, Model
from envmodel_tools.config import MetricConfig, SpaceConfig
from envmodel_tools.errors import InvalidParameter, NumericalInstability
from envmodel_tools.forest import ForestParameters
from envmodel_tools.utils.distributions import DISTRIBUTIONS
from envmodel_tools.utils.metric import Metric


times = np.arange(0, 301, dtype=float)

run_kwargs = {
    "params": ForestParameters.baseline(),
    "initial_stock": 10.0,
    "times": times,
}

metric_config = MetricConfig.from_dict({
    "metrics": ["max_growth", "threshold_year"],
    "params": ["C", "C"],
})


def test_model_inheritance():
    assert issubclass(ForestGrowthModel, Model)


def test_get_objective_returns_callable():
    model = ForestGrowthModel(run_kwargs=run_kwargs, eval_kwargs={})
    obj = model.get_objective()
    assert callable(obj)


def test_objective_applies_overrides():
    model = ForestGrowthModel(run_kwargs=run_kwargs)
    obj = model.get_objective()

    base = obj()
    faster = obj(X={"post_closure_rate": 3.0})

    assert faster["C"].iloc[-1] > base["C"].iloc[-1]
    # Baseline parameters are untouched by the override
    assert run_kwargs["params"].post_closure_rate == 2.0


def test_evaluate_model_returns_dict():
    output = ForestGrowthModel.run(**run_kwargs)
    errors = ForestGrowthModel.evaluate_model(output, metric_config, reporting_threshold=50.0)

    assert isinstance(errors, dict)
    assert set(errors) == {"max_growth", "threshold_year"}
    assert errors["max_growth"] == pytest.approx(184.3, abs=0.5)
    assert errors["threshold_year"] == 161.0


def test_evaluate_model_none_output_is_nan():
    errors = ForestGrowthModel.evaluate_model(None, metric_config)
    assert all(np.isnan(v) for v in errors.values())


def test_evaluate_model_custom_metric():
    def final_value(t, y):
        return float(y[-1])

    m = Metric(name="final", output_name="C", func=final_value)
    output = pd.DataFrame({"time": [0.0, 1.0, 2.0], "C": [1.0, 2.0, 4.0]})

    errors = ForestGrowthModel.evaluate_model(output, MetricConfig(metrics=[m]))
    assert errors == {"final": 4.0}


def test_run_parallel_sequential_and_threaded_agree():
    X = [{"post_closure_rate": g} for g in np.linspace(1.0, 3.0, 8)]

    seq = ForestGrowthModel.run_parallel(workers=1, X=X, progress=False, **run_kwargs)
    par = ForestGrowthModel.run_parallel(workers=4, X=X, progress=False, **run_kwargs)

    assert len(seq) == len(par) == len(X)
    for a, b in zip(seq, par):
        pd.testing.assert_frame_equal(a, b)

    finals = [out["C"].iloc[-1] for out in seq]
    assert finals == sorted(finals)


def test_run_parallel_invalid_parameters_give_none():
    X = [{"carrying_capacity": 0.0}, {}, {"pre_closure_rate": -1.0}]
    out = ForestGrowthModel.run_parallel(workers=2, X=X, progress=False, **run_kwargs)

    assert out[0] is None
    assert isinstance(out[1], pd.DataFrame)
    assert out[2] is None


def test_run_parallel_numerical_instability_propagates(monkeypatch):
    def failing(*args, **kwargs):
        raise NumericalInstability("step size underflow")

    monkeypatch.setattr(ForestGrowthModel, "launch_model", staticmethod(failing))

    with pytest.raises(NumericalInstability):
        ForestGrowthModel.run_parallel(workers=2, X=[{}, {}], progress=False, **run_kwargs)


@pytest.mark.parametrize("workers", [1, 2])
def test_run_parallel_closes_progress_bar_on_error(monkeypatch, workers):
    closed = []

    class RecordingBar(tqdm):
        def close(self):
            closed.append(True)
            super().close()

    def failing(*args, **kwargs):
        raise NumericalInstability("step size underflow")

    monkeypatch.setattr("envmodel_tools.model.tqdm", RecordingBar)
    monkeypatch.setattr(ForestGrowthModel, "launch_model", staticmethod(failing))

    with pytest.raises(NumericalInstability):
        ForestGrowthModel.run_parallel(workers=workers, X=[{}, {}], progress=False, **run_kwargs)
    assert closed


def test_run_unknown_parameter_raises():
    with pytest.raises(ValueError):
        ForestGrowthModel.run(X={"leaf_area": 2.0}, **run_kwargs)


def test_check_configuration_accepts_reference():
    model = ForestGrowthModel(run_kwargs=run_kwargs)
    space = SpaceConfig.from_dict(DISTRIBUTIONS, {"carrying_capacity": ["normal", [250, 25]]})
    model.check_configuration(space)


def test_check_configuration_rejects_zero_capacity():
    bad = dict(run_kwargs, params=ForestParameters.baseline().with_overrides(carrying_capacity=0))
    model = ForestGrowthModel(run_kwargs=bad)

    with pytest.raises(InvalidParameter):
        model.check_configuration()


def test_check_configuration_rejects_space_mean():
    model = ForestGrowthModel(run_kwargs=run_kwargs)
    space = SpaceConfig.from_dict(DISTRIBUTIONS, {"carrying_capacity": ["normal", [-10, 1]]})

    with pytest.raises(InvalidParameter):
        model.check_configuration(space)


def test_plot_trajectory_returns_figure():
    output = ForestGrowthModel.run(**run_kwargs)
    fig = ForestGrowthModel.plot_trajectory(
        output, label="baseline", canopy_threshold=50, carrying_capacity=250
    )
    assert isinstance(fig, plt.Figure)
    plt.close(fig)
