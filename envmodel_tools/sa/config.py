"""Configuration classes for sensitivity analysis settings.

This module provides the problem definition passed to SALib and the
configuration of a Sobol sensitivity analysis run: the parameter sampling
space, the analysed metrics, sample sizes and the scenario the model is run
under. Configurations can be saved to and loaded from JSON.

Typical usage example:

    from envmodel_tools.sa import SensitivityAnalysisConfig

    config = SensitivityAnalysisConfig.from_json("sa_config.json")
    config.samples = 512
    config.to_json("small_sa_config.json")
"""

from dataclasses import dataclass, asdict, fields
import json

import numpy as np

from ..config.metric import MetricConfig
from ..config.space import SpaceConfig
from ..utils.distributions import DISTRIBUTIONS


@dataclass
class SensitivityAnalysisProblem:
    """Problem definition for sensitivity analysis using SALib.

    Attributes:
        num_vars (int): Number of parameters.
        names (list[str]): Parameter names, in sample column order.
        bounds (list[list[float]]): `[min, max]` of the sampled values of each
            parameter. Informational only: Sobol analysis in SALib reads the
            outputs, not the bounds.
    """

    num_vars: int
    names: list[str]
    bounds: list[list[float]]

    @classmethod
    def from_samples(cls, X1, X2) -> "SensitivityAnalysisProblem":
        """Build the problem from the two base sample matrices (DataFrames)."""
        names = list(X1.columns)
        both = np.vstack([X1.to_numpy(dtype=float), X2.to_numpy(dtype=float)])
        bounds = [[float(lo), float(hi)] for lo, hi in zip(both.min(axis=0), both.max(axis=0))]
        return cls(num_vars=len(names), names=names, bounds=bounds)

    def to_dict(self):
        """Convert the problem to the dictionary format SALib functions expect."""
        return asdict(self)


@dataclass
class SensitivityAnalysisConfig:
    """Configuration for a Sobol sensitivity analysis run.

    Attributes:
        space (SpaceConfig): Marginal distribution of each sampled parameter.
        metric (MetricConfig): Metrics analysed, each one separately.
        samples (int): Rows `N` of each base sample matrix. The model is run
            `N * (D + 2)` times for `D` parameters.
        num_resamples (int): Bootstrap resamples for confidence intervals.
        conf_level (float): Confidence level of the bootstrap intervals.
        seed (int): Seed of the sample matrices and of the bootstrap.
        workers (int): Worker threads for model evaluation. 1 runs
            sequentially; results are identical either way.
        initial_stock (float): Carbon stock at time 0.
        horizon (float): Last simulated time.
        time_step (float): Spacing of the output time grid.
        reporting_threshold (float): Stock level used by the
            `threshold_year` metric. Not tied to the canopy threshold.
    """

    space: SpaceConfig
    metric: MetricConfig
    samples: int = 2000
    num_resamples: int = 300
    conf_level: float = 0.95
    seed: int = 42
    workers: int = 4
    initial_stock: float = 10.0
    horizon: float = 300.0
    time_step: float = 1.0
    reporting_threshold: float = 50.0

    @classmethod
    def reference(cls, **overrides) -> "SensitivityAnalysisConfig":
        """Reference forest growth scenario.

        All four forest parameters are normal around the baseline values
        (r 0.01, g 2, canopy threshold 50, K 250) with a standard deviation of
        10% of the mean. Both `max_growth` and `threshold_year` are analysed.

        Args:
            **overrides: Field values replacing the reference ones.
        """
        space = SpaceConfig.from_dict(DISTRIBUTIONS, {
            "pre_closure_rate": ["normal", [0.01, 0.001]],
            "post_closure_rate": ["normal", [2.0, 0.2]],
            "canopy_threshold": ["normal", [50.0, 5.0]],
            "carrying_capacity": ["normal", [250.0, 25.0]],
        })
        metric = MetricConfig.from_dict({
            "metrics": ["max_growth", "threshold_year"],
            "params": ["C", "C"],
        })
        return cls(space=space, metric=metric, **overrides)

    def times(self) -> np.ndarray:
        """Output time grid `0, time_step, ..., horizon`.

        Raises:
            ValueError: If `time_step` or `horizon` is not positive, or the
                horizon is not a whole number of time steps.
        """
        if self.time_step <= 0 or self.horizon <= 0:
            raise ValueError(
                f"horizon and time_step must be positive, got {self.horizon} and {self.time_step}"
            )
        n = int(round(self.horizon / self.time_step))
        if not np.isclose(n * self.time_step, self.horizon):
            raise ValueError(
                f"horizon {self.horizon} is not a multiple of time_step {self.time_step}"
            )
        return np.linspace(0.0, self.horizon, n + 1)

    def run_kwargs(self, params) -> dict:
        """Keyword arguments for `ForestGrowthModel(run_kwargs=...)`."""
        return {
            "params": params,
            "initial_stock": self.initial_stock,
            "times": self.times(),
        }

    def eval_kwargs(self) -> dict:
        """Keyword arguments for `ForestGrowthModel(eval_kwargs=...)`."""
        return {"reporting_threshold": self.reporting_threshold}

    @classmethod
    def from_json(cls, infile: str):
        """Create a SensitivityAnalysisConfig instance from a JSON file.

        The 'space' entry maps parameter names to
        `[distribution_name, parameters]` and the 'metric' entry holds the
        'metrics' and 'params' lists of `MetricConfig.from_dict`.

        Args:
            infile (str): Path to the JSON file.

        Returns:
            SensitivityAnalysisConfig: Loaded configuration.

        Raises:
            FileNotFoundError: If the specified file does not exist.
            json.JSONDecodeError: If the file contains invalid JSON.
            ValueError: If a distribution or metric name is unknown.
            KeyError: If 'space' or 'metric' is missing.
        """

        with open(infile, "r") as f:
            data = json.load(f)

        # Convert nested dictionaries to proper config instances
        data['space'] = SpaceConfig.from_dict(DISTRIBUTIONS, data['space'])
        data['metric'] = MetricConfig.from_dict(data["metric"])
        return cls(**data)

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["space"] = self.space.to_dict()
        data["metric"] = self.metric.to_dict()
        return data

    def to_json(self, outfile: str):
        """Serialize the configuration to a JSON file.

        The file is opened in exclusive creation mode ("+x") so an existing
        configuration is never overwritten.

        Raises:
            FileExistsError: If the specified file already exists.
        """
        with open(outfile, "+x") as f:
            json.dump(self.to_dict(), f, indent=4)
