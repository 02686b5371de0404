"""
# Model Interface and Forest Growth Implementation

Abstract model interface used by the sensitivity analysis, and its
implementation for the piecewise forest growth model.

## Classes

- `Model`: Abstract base class defining the interface for all models
- `ForestGrowthModel`: Forest carbon growth model integrated with SciPy

## Key Features

- **Parallel Execution**: Independent parameter sets run on a thread pool,
  each result written to its own slot so ordering never depends on scheduling
- **Parameter Overrides**: Sampled values replace baseline parameters per run
- **Model Evaluation**: Trajectories reduced to scalar metrics

## Example Usage

```python
import numpy as np
from envmodel_tools import ForestGrowthModel
from envmodel_tools.forest import ForestParameters
from envmodel_tools.config import MetricConfig

model = ForestGrowthModel(
    run_kwargs={
        'params': ForestParameters.baseline(),
        'initial_stock': 10.0,
        'times': np.arange(0, 301),
    },
    eval_kwargs={'reporting_threshold': 50.0}
)

trajectory = model.get_objective()(X={'post_closure_rate': 2.5})
metrics = model.evaluate_model(
    trajectory,
    metric_config=MetricConfig.from_dict({'metrics': ['max_growth'], 'params': ['C']}),
    **model.eval_kwargs
)
```
"""

# Basic data utils
import pandas as pd
import numpy as np
from typing import Callable, Any
from numpy.typing import ArrayLike
from abc import abstractmethod, ABC
from functools import partial

import logging

# Plotting
import matplotlib.pyplot as plt

# Model and metrics
from envmodel_tools.config import MetricConfig, SpaceConfig
from envmodel_tools.errors import InvalidParameter
from envmodel_tools.forest import ForestParameters, integrate_forest
from envmodel_tools.utils.results import EvalResults

# Parallel runs
from tqdm import tqdm
from concurrent.futures import ThreadPoolExecutor, as_completed


class Model(ABC):
    """
    Abstract base class for environmental models.

    Subclasses implement single and batch execution plus the reduction of a
    model output to scalar metrics. The sensitivity analysis only talks to
    models through this interface.

    Attributes:
        run_kwargs (dict): Keyword arguments passed to model execution methods.
        eval_kwargs (dict): Keyword arguments passed to model evaluation methods.
    """
    def __init__(
            self,
            run_kwargs: dict = None,
            eval_kwargs: dict = None,
    ):
        self.run_kwargs = run_kwargs if run_kwargs is not None else {}
        self.eval_kwargs = eval_kwargs if eval_kwargs is not None else {}

    @staticmethod
    @abstractmethod
    def run_parallel(X: list[dict[str, Any]] = None, *args, **kwargs) -> list[ArrayLike | None]:
        """
        Execute the model for several parameter sets.

        Returns:
            list[ArrayLike | None]: One output per parameter set, in input
                order. None marks a run rejected for invalid parameters.
        """
        pass

    @staticmethod
    @abstractmethod
    def run(X: dict[str, Any] = None, *args, **kwargs) -> ArrayLike | None:
        """Execute the model for a single parameter set."""
        pass

    @staticmethod
    @abstractmethod
    def launch_model(*args, **kwargs) -> ArrayLike | None:
        """Low-level model computation, called by `run`."""
        pass

    @staticmethod
    @abstractmethod
    def evaluate_model(*args, **kwargs) -> EvalResults:
        """Reduce one model output to a dictionary of scalar metrics."""
        pass

    def check_configuration(self, space: SpaceConfig = None) -> None:
        """
        Validate the deterministic configuration before any sampling.

        The default accepts everything. Models override this to fail fast on
        configuration-level errors.

        Args:
            space (SpaceConfig, optional): Sampling space that will be used.
        """
        return None

    def get_objective(
        self
    ) -> Callable:
        """
        Bind `run_kwargs` to the model's `run` method.

        Returns:
            Callable: `objective(X=...)` running the model with the bound
                keyword arguments.
        """
        return partial(
            self.run,
            **self.run_kwargs
        )


class ForestGrowthModel(Model):
    """
    Forest carbon growth model.

    Runs `integrate_forest` for a baseline `ForestParameters` with optional
    per-run overrides, and extracts metrics such as the maximum stock and the
    year a reporting threshold is first exceeded.

    Expected `run_kwargs`:
        - 'params': ForestParameters used as the baseline
        - 'initial_stock': float stock at the first time point
        - 'times': array-like output times
        - optional solver settings: 'method', 'rtol', 'atol', 'max_step'

    Expected `eval_kwargs`:
        - 'reporting_threshold': float threshold for `threshold_year`
    """
    def __init__(
            self,
            run_kwargs: dict = None,
            eval_kwargs: dict = None
    ):
        super().__init__(run_kwargs=run_kwargs, eval_kwargs=eval_kwargs)

    def check_configuration(self, space: SpaceConfig = None) -> None:
        """
        Validate the baseline parameters and the centre of the sampling space.

        A non-positive carrying capacity in the baseline, or as the mean of its
        sampling distribution, is a configuration error rather than a sampled
        outlier, so it is reported before any model run.

        Args:
            space (SpaceConfig, optional): Sampling space that will be used.
                Its names must be `ForestParameters` fields.

        Raises:
            InvalidParameter: If the baseline or the space means are invalid.
            ValueError: If 'params' is missing from `run_kwargs` or the space
                names an unknown parameter.
        """
        params = self.run_kwargs.get("params")
        if params is None:
            raise ValueError("run_kwargs must provide the baseline 'params'")
        params.validate()

        if space:
            means = {
                name: dist.mean()
                for name, dist in space.get_search_space().items()
            }
            params.with_overrides(**means).validate()

    @staticmethod
    def run_parallel(
        params: ForestParameters,
        initial_stock: float,
        times: ArrayLike,
        workers: int = 4,
        X: list[dict[str, float]] = None,
        progress: bool = True,
        **kwargs
    ) -> list[pd.DataFrame | None]:
        """
        Integrate the model for many parameter sets on a thread pool.

        Args:
            params (ForestParameters): Baseline parameters.
            initial_stock (float): Stock at the first time point.
            times (ArrayLike): Output times.
            workers (int, optional): Worker threads. With 1 or fewer, runs
                sequentially. Defaults to 4.
            X (list[dict[str, float]], optional): Parameter overrides, one
                dict per run.
            progress (bool, optional): Show a progress bar. Defaults to True.
            **kwargs: Solver settings passed to `run`.

        Returns:
            list[pd.DataFrame | None]: Trajectories in the order of `X`. Runs
                with invalid parameters give None.

        Raises:
            NumericalInstability: If any integration fails. The remaining
                runs are abandoned.
        """
        X = X if X is not None else [None]
        N = len(X)
        res = [None for _ in range(N)]  # Ensure that we have an accessible index

        def _run(idx):
            try:
                res[idx] = ForestGrowthModel.run(
                    params, initial_stock, times, X=X[idx], **kwargs
                )
            except InvalidParameter as e:
                logging.warning(f"Run {idx} rejected: {e}")

        with tqdm(total=N, disable=not progress) as pbar:
            if workers <= 1:
                for i in range(N):
                    _run(i)
                    pbar.update(1)
            else:
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    futures = [executor.submit(_run, i) for i in range(N)]
                    try:
                        for future in as_completed(futures):
                            future.result()
                            pbar.update(1)
                    except Exception:
                        for future in futures:
                            future.cancel()
                        raise

        return res

    @staticmethod
    def run(
        params: ForestParameters,
        initial_stock: float,
        times: ArrayLike,
        X: dict[str, float] = None,
        **kwargs
    ) -> pd.DataFrame:
        """
        Integrate the model for one parameter set.

        Args:
            params (ForestParameters): Baseline parameters. Not modified.
            initial_stock (float): Stock at the first time point.
            times (ArrayLike): Output times.
            X (dict[str, float], optional): Parameter overrides, keyed by
                `ForestParameters` field name.
            **kwargs: Solver settings passed to `launch_model`.

        Returns:
            pd.DataFrame: Trajectory with columns `time` and `C`.

        Raises:
            InvalidParameter: If the resulting parameters are invalid.
            NumericalInstability: If the integration fails.
        """
        if X is not None:
            params = params.with_overrides(**X)

        return ForestGrowthModel.launch_model(
            params=params,
            initial_stock=initial_stock,
            times=times,
            **kwargs
        )

    @staticmethod
    def launch_model(
        params: ForestParameters,
        initial_stock: float,
        times: ArrayLike,
        method: str = "RK45",
        rtol: float = 1e-6,
        atol: float = 1e-8,
        max_step: float = np.inf
    ) -> pd.DataFrame:
        return integrate_forest(
            initial_stock,
            times,
            params,
            method=method,
            rtol=rtol,
            atol=atol,
            max_step=max_step
        )

    @staticmethod
    def evaluate_model(
        output: pd.DataFrame | None,
        metric_config: MetricConfig,
        reporting_threshold: float = 50.0
    ) -> EvalResults:
        """
        Compute the configured metrics of one trajectory.

        Args:
            output (pd.DataFrame | None): Trajectory from `run`. None (a
                rejected run) yields NaN for every metric.
            metric_config (MetricConfig): Metrics to compute.
            reporting_threshold (float, optional): Threshold used by
                `threshold_year`. Independent of the model's canopy threshold.
                Defaults to 50.0.

        Returns:
            EvalResults: Metric names to values.
        """
        results = {}
        for metric in metric_config.metrics:
            if output is None:
                results[metric.name] = np.nan
            else:
                results[metric.name] = metric.compute(
                    output, reporting_threshold=reporting_threshold
                )
        return results

    @staticmethod
    def plot_trajectory(
        trajectory: pd.DataFrame,
        ax: plt.Axes = None,
        label: str = None,
        canopy_threshold: float = None,
        carrying_capacity: float = None
    ) -> plt.Figure:
        """
        Plot forest carbon stock over time.

        Args:
            trajectory (pd.DataFrame): Output of `run`.
            ax (plt.Axes, optional): Axes to draw on. A new figure is created
                when omitted.
            label (str, optional): Line label.
            canopy_threshold (float, optional): Drawn as a dashed line if given.
            carrying_capacity (float, optional): Drawn as a dotted line if given.

        Returns:
            plt.Figure: The figure containing the plot. The caller closes it.
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=(10, 6))
        else:
            fig = ax.figure

        ax.plot(trajectory["time"], trajectory["C"], label=label)
        if canopy_threshold is not None:
            ax.axhline(canopy_threshold, color="gray", linestyle="--", label="Canopy closure")
        if carrying_capacity is not None:
            ax.axhline(carrying_capacity, color="gray", linestyle=":", label="Carrying capacity")

        ax.set_xlabel("Time (years)")
        ax.set_ylabel("Forest carbon (C)")
        ax.set_title("Forest Growth")
        ax.grid(True)
        if label is not None or canopy_threshold is not None or carrying_capacity is not None:
            ax.legend()

        return fig
