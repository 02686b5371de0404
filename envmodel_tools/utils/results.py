"""
# Results Management

Data structures holding model evaluation and sensitivity analysis results.

## Type Aliases

- `EvalResults`: Dictionary mapping metric names to computed values

## Classes

- `IndexStatus`: Whether sensitivity indices could be estimated
- `SobolResult`: First-order and total-effect indices for one metric
- `SensitivityResults`: Collection of `SobolResult` by metric name

## Example Usage

```python
results = sa.run()
for name, res in results.items():
    if res.status is IndexStatus.NO_VARIANCE:
        print(f"{name}: output is constant, indices undefined")
    else:
        print(res.to_df())
results.save("sa_results/")
```
"""

from dataclasses import dataclass, field
from enum import Enum
import pandas as pd
import numpy as np
import os


EvalResults = dict[str, float]
"""Type alias for evaluation results dictionary mapping metric names to values."""


class IndexStatus(str, Enum):
    """
    Outcome of a Sobol index estimation.

    Values:
        OK: Indices were estimated.
        NO_VARIANCE: The metric output is constant across all samples, so the
            variance decomposition, and every index, is undefined.
    """
    OK = "ok"
    NO_VARIANCE = "no_variance"


@dataclass
class SobolResult:
    """
    Sobol sensitivity indices of one metric.

    Attributes:
        metric (str): Name of the analysed metric.
        names (list[str]): Parameter names, in index order.
        S1 (np.ndarray): First-order indices, shape (D,).
        S1_conf (np.ndarray): Bootstrap confidence half-widths of S1.
        ST (np.ndarray): Total-effect indices, shape (D,).
        ST_conf (np.ndarray): Bootstrap confidence half-widths of ST.
        outputs (np.ndarray): Metric value for every design row used in the
            estimate, in design order.
        status (IndexStatus): `NO_VARIANCE` when the indices are undefined;
            the index arrays are then all NaN.
    """
    metric: str
    names: list[str]
    S1: np.ndarray
    S1_conf: np.ndarray
    ST: np.ndarray
    ST_conf: np.ndarray
    outputs: np.ndarray = field(repr=False)
    status: IndexStatus = IndexStatus.OK

    @classmethod
    def no_variance(cls, metric: str, names: list[str], outputs: np.ndarray) -> "SobolResult":
        nan = np.full(len(names), np.nan)
        return cls(
            metric=metric,
            names=list(names),
            S1=nan.copy(),
            S1_conf=nan.copy(),
            ST=nan.copy(),
            ST_conf=nan.copy(),
            outputs=outputs,
            status=IndexStatus.NO_VARIANCE
        )

    def to_df(self) -> pd.DataFrame:
        """
        Index table with one row per parameter.

        Returns:
            pd.DataFrame: Columns `S1`, `S1_conf`, `ST`, `ST_conf`, indexed by
                parameter name.
        """
        return pd.DataFrame(
            {
                "S1": self.S1,
                "S1_conf": self.S1_conf,
                "ST": self.ST,
                "ST_conf": self.ST_conf,
            },
            index=pd.Index(self.names, name="parameter")
        )


class SensitivityResults(dict[str, SobolResult]):
    """
    Sobol results keyed by metric name.

    Indices are metric-specific: every entry comes from a separate analysis
    of that metric's outputs.
    """

    def first_order(self) -> pd.DataFrame:
        """First-order indices, one column per metric."""
        return pd.DataFrame(
            {name: pd.Series(res.S1, index=res.names) for name, res in self.items()}
        )

    def total_order(self) -> pd.DataFrame:
        """Total-effect indices, one column per metric."""
        return pd.DataFrame(
            {name: pd.Series(res.ST, index=res.names) for name, res in self.items()}
        )

    def save(self, directory: str):
        """
        Write one `{metric}_indices.csv` table per metric into `directory`.

        Results with status `NO_VARIANCE` are written too, with NaN indices and
        a `status` column so they cannot be mistaken for zero sensitivity.
        The directory must already exist.
        """
        for name, res in self.items():
            df = res.to_df()
            df["status"] = res.status.value
            df.to_csv(os.path.join(directory, f"{name}_indices.csv"))
