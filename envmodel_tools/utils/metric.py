"""
# Output Metrics

Scalar summaries of model outputs.

## Trajectory metrics

Used to reduce a forest growth trajectory to the quantities analysed by the
sensitivity analysis:

- `max_stock`: Largest stock reached over the whole trajectory
- `first_crossing_time`: First time the stock exceeds a reporting threshold
- `Metric`, `MaxValue`, `ThresholdYear`: Named wrappers used in `MetricConfig`

## Streamflow skill metrics

Compare modelled and observed streamflow:

- `nash_sutcliffe_efficiency` and `normalized_nash_sutcliffe_efficiency`
- `compute_lowflowduration`: Error and correlation of annual low-flow day counts
- `compute_lowflowduration_all`: Low-flow error, correlation and a weighted
  combined score

## Example Usage

```python
from envmodel_tools.utils.metric import Metric

metric = Metric.from_name("threshold_year", "C")
year = metric.compute(trajectory, reporting_threshold=100)
```
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Callable

from sklearn.metrics import mean_absolute_error


def max_stock(times, values) -> float:
    """Maximum of `values`, including the initial point."""
    return float(np.max(values))


def first_crossing_time(times, values, threshold: float) -> float:
    """
    Time at which `values` first exceeds `threshold`.

    Args:
        times (array-like): Time points, increasing.
        values (array-like): Values at each time point.
        threshold (float): Reporting threshold. The comparison is strict.

    Returns:
        float: Time of the first value strictly greater than `threshold`. If
            the threshold is never exceeded, the final time is returned, which
            reads as "not reached within the simulated horizon".
    """
    times = np.asarray(times, dtype=float)
    above = np.flatnonzero(np.asarray(values) > threshold)
    if above.size == 0:
        return float(times[-1])
    return float(times[above[0]])


@dataclass
class Metric:
    """
    A named scalar metric computed from one output column of a trajectory.

    Attributes:
        name (str): Metric identifier, used as the key in evaluation results.
        output_name (str): Trajectory column the metric reads.
        func (Callable): `func(times, values)` returning a float.
    """
    name: str
    output_name: str
    func: Callable

    def compute(self, trajectory: pd.DataFrame, **kwargs) -> float:
        """Apply the metric to `trajectory` (columns `time` and `output_name`)."""
        return self.func(
            trajectory["time"].to_numpy(),
            trajectory[self.output_name].to_numpy()
        )

    @staticmethod
    def from_name(metric_name: str, output_name: str) -> "Metric":
        """
        Create a metric from its name.

        Args:
            metric_name (str): One of 'max_growth' or 'threshold_year'
                (case-insensitive).
            output_name (str): Trajectory column to read, e.g. 'C'.

        Returns:
            Metric: The corresponding metric instance.

        Raises:
            ValueError: If `metric_name` is not recognized.
        """
        mapping = {
            "max_growth": MaxValue,
            "threshold_year": ThresholdYear,
        }

        metric_cls = mapping.get(metric_name.lower())
        if metric_cls is None:
            raise ValueError(f"Unknown metric name: {metric_name}")

        return metric_cls(output_name)


class MaxValue(Metric):
    """Maximum value reached over the trajectory."""
    def __init__(self, output_name: str, name: str = "max_growth"):
        super().__init__(name=name, output_name=output_name, func=max_stock)


class ThresholdYear(Metric):
    """
    First time the output exceeds a reporting threshold.

    The threshold is supplied at evaluation time as `reporting_threshold`, so
    the same metric can be reused with different reporting thresholds.
    """
    def __init__(self, output_name: str, name: str = "threshold_year"):
        super().__init__(name=name, output_name=output_name, func=first_crossing_time)

    def compute(self, trajectory: pd.DataFrame, reporting_threshold: float = 50.0, **kwargs) -> float:
        return self.func(
            trajectory["time"].to_numpy(),
            trajectory[self.output_name].to_numpy(),
            reporting_threshold
        )


def nash_sutcliffe_efficiency(predictions, targets):
    """
    Nash-Sutcliffe efficiency of modelled against observed flow.

    NSE = 1 - sum((o - m)^2) / sum((o - mean(o))^2). A value of 1 is a perfect
    fit; 0 means the model is no better than the observed mean.
    """
    predictions = np.asarray(predictions, dtype=float)
    targets = np.asarray(targets, dtype=float)
    return 1 - (np.sum((targets - predictions) ** 2) / np.sum((targets - np.mean(targets)) ** 2))


def normalized_nash_sutcliffe_efficiency(predictions, targets):
    """NSE rescaled to (0, 1] as 1 / (2 - NSE)."""
    return 1 / (2 - nash_sutcliffe_efficiency(predictions, targets))


def _annual_low_flow_days(m, o, wy, low_flow_threshold: float) -> pd.DataFrame:
    flow = pd.DataFrame({
        "model": np.asarray(m, dtype=float) < low_flow_threshold,
        "obs": np.asarray(o, dtype=float) < low_flow_threshold,
        "wy": np.asarray(wy),
    })
    # One row per water year
    return flow.groupby("wy")[["model", "obs"]].sum().astype(int)


def compute_lowflowduration(m, o, wy, low_flow_threshold: float = 0.25) -> dict[str, float]:
    """
    Low flow duration skill of modelled streamflow.

    Counts, for every water year, the days with flow below
    `low_flow_threshold` in the model and in the observations.

    Args:
        m (array-like): Modelled daily streamflow.
        o (array-like): Observed daily streamflow.
        wy (array-like): Water year of each day.
        low_flow_threshold (float, optional): Flow under which a day counts as
            low flow. Defaults to 0.25.

    Returns:
        dict[str, float]:
            - 'annual_low_flow_days_err': mean of (model - observed) annual
              low-flow day counts. Positive means the model overestimates.
            - 'annual_low_flow_days_cor': correlation of the annual counts
              (NaN if either series is constant).
    """
    days = _annual_low_flow_days(m, o, wy, low_flow_threshold)
    return {
        "annual_low_flow_days_err": float(np.mean(days["model"] - days["obs"])),
        "annual_low_flow_days_cor": float(days["model"].corr(days["obs"])),
    }


def compute_lowflowduration_all(
    m,
    o,
    wy,
    low_flow_threshold: float = 0.25,
    wts: tuple[float, float] = (0.5, 0.5)
) -> dict[str, float]:
    """
    Low flow duration error, correlation and combined score.

    The mean absolute error of annual low-flow day counts is rescaled to a
    score in [0, 1] as `max(0, 1 - err / (0.5 * max(observed days)))` and
    combined with the correlation of the annual counts using the normalized
    weights `wts`.

    Args:
        m (array-like): Modelled daily streamflow.
        o (array-like): Observed daily streamflow.
        wy (array-like): Water year of each day.
        low_flow_threshold (float, optional): Defaults to 0.25.
        wts (tuple[float, float], optional): Weights of the error score and of
            the correlation. Defaults to (0.5, 0.5).

    Returns:
        dict[str, float]:
            - 'low_flow_days_err': mean absolute error of annual counts.
            - 'low_flow_days_cor': correlation of annual counts, NaN when
              either series has a single distinct value.
            - 'combined_metric': weighted score, NaN when the correlation is.

    Example:
        ```python
        res = compute_lowflowduration_all(df.model, df.obs, df.wy, wts=(0.3, 0.7))
        res["combined_metric"]
        ```
    """
    days = _annual_low_flow_days(m, o, wy, low_flow_threshold)

    err = float(mean_absolute_error(days["obs"], days["model"]))

    max_error = 0.5 * days["obs"].max()
    if max_error > 0:
        err_score = max(0.0, 1 - err / max_error)
    else:
        # No observed low-flow days: only a perfect match scores
        err_score = 1.0 if err == 0 else 0.0

    if days["model"].nunique() > 1 and days["obs"].nunique() > 1:
        cor = float(days["model"].corr(days["obs"]))
    else:
        cor = np.nan

    if np.isnan(cor):
        combined = np.nan
    else:
        wts = np.asarray(wts, dtype=float)
        wts = wts / wts.sum()
        combined = float(wts[0] * err_score + wts[1] * cor)

    return {
        "low_flow_days_err": err,
        "low_flow_days_cor": cor,
        "combined_metric": combined,
    }
