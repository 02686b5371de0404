"""Sensitivity analysis implementation using Sobol indices.

This module implements variance-based global sensitivity analysis of a model
with respect to its uncertain parameters. Two independent base sample matrices
are drawn from the parameter distributions, combined into a Saltelli design,
and every design row is evaluated with the model. First-order and total-effect
indices are then estimated with SALib, separately for each configured metric.

Features:
    - Independent, seeded base matrices (or caller-supplied ones)
    - First-order (Saltelli 2010) and total-effect (Jansen) indices with
      bootstrap confidence intervals
    - Explicit "no variance" results for constant metric outputs
    - Rejected evaluations excluded by whole base row
    - Figures returned to the caller, optionally saved

Limitations:
    - Second-order indices are not computed

References:
    - Saltelli, A., et al. (2010). Variance based sensitivity analysis of model
      output. Design and estimator for the total sensitivity index.
    - Jansen, M.J.W. (1999). Analysis of variance designs for model output.

Typical usage example:

    from envmodel_tools import ForestGrowthModel
    from envmodel_tools.forest import ForestParameters
    from envmodel_tools.sa import SensitivityAnalysis, SensitivityAnalysisConfig

    config = SensitivityAnalysisConfig.reference()
    model = ForestGrowthModel(
        run_kwargs=config.run_kwargs(ForestParameters.baseline()),
        eval_kwargs=config.eval_kwargs()
    )
    results = SensitivityAnalysis(model, config).run("output_directory")
"""

# Model and config
from ..model import Model
from ..errors import ModelError
from ..utils.results import IndexStatus, SensitivityResults, SobolResult
from .config import SensitivityAnalysisConfig, SensitivityAnalysisProblem
from .sampling import get_base_samples, saltelli_design

# SALib
from SALib.analyze import sobol as asobol

# Plotting
import matplotlib.pyplot as plt

# Logging
import logging

# Data and saving
import numpy as np
import pandas as pd
import os


class SensitivityAnalysis:
    """Global sensitivity analysis using Sobol indices.

    Attributes:
        model (Model): The model to analyse. Must implement `run_parallel` and
            `evaluate_model`; its `run_kwargs` and `eval_kwargs` are forwarded.
        config (SensitivityAnalysisConfig): Sampling space, metrics and
            estimator settings.

    Example:
        ```python
        sa = SensitivityAnalysis(model, SensitivityAnalysisConfig.reference())
        results = sa.run()
        results["max_growth"].to_df()
        ```
    """

    def __init__(
        self,
        model: Model,
        config: SensitivityAnalysisConfig,
    ):
        self.model = model
        self.config = config

    def _get_samples(self, res_dir: str = None) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Draw X1 and X2 and optionally save them as CSV."""
        logging.info(f"Drawing {self.config.samples} base samples.")
        X1, X2 = get_base_samples(
            self.config.space,
            self.config.samples,
            seed=self.config.seed
        )

        if res_dir is not None:
            X1.to_csv(os.path.join(res_dir, "sample_X1.csv"), index=False)
            X2.to_csv(os.path.join(res_dir, "sample_X2.csv"), index=False)

        return X1, X2

    def _get_errors(self, output) -> dict[str, np.ndarray]:
        """Evaluate the configured metrics on every model output.

        Args:
            output: Model outputs in design order. None entries (rejected
                runs) give NaN metrics.

        Returns:
            dict[str, np.ndarray]: Metric name to one value per output.
        """
        errors = {
            metric.name: []
            for metric in self.config.metric.metrics
        }

        for out in output:
            err = self.model.evaluate_model(
                out,
                metric_config=self.config.metric,
                **self.model.eval_kwargs
            )

            for k in errors.keys():
                errors[k].append(err[k])

        return {k: np.asarray(v, dtype=float) for k, v in errors.items()}

    def evaluate(self, design: pd.DataFrame) -> dict[str, np.ndarray]:
        """Run the model on every design row and extract the metrics.

        Args:
            design (pd.DataFrame): One parameter set per row; columns are
                parameter names.

        Returns:
            dict[str, np.ndarray]: Metric name to one value per design row.
        """
        logging.info(f"Running model with {len(design)} samples.")
        samples = design.to_dict(orient="records")
        outputs = self.model.run_parallel(
            X=samples,
            workers=self.config.workers,
            **self.model.run_kwargs
        )
        return self._get_errors(outputs)

    @staticmethod
    def analyze_output(
        metric: str,
        Y: np.ndarray,
        problem: SensitivityAnalysisProblem,
        num_resamples: int = 300,
        conf_level: float = 0.95,
        seed: int = 42
    ) -> SobolResult:
        """Estimate Sobol indices of one metric.

        Args:
            metric (str): Metric name, for labelling.
            Y (np.ndarray): Metric values in Saltelli design order,
                `N * (D + 2)` entries. NaN marks a rejected evaluation.
            problem (SensitivityAnalysisProblem): Parameter names.
            num_resamples (int, optional): Bootstrap resamples. Defaults to 300.
            conf_level (float, optional): Confidence level. Defaults to 0.95.
            seed (int, optional): Bootstrap seed. Defaults to 42.

        Returns:
            SobolResult: Indices clipped to [0, 1], or a `NO_VARIANCE` result
                if every retained output is identical.

        Raises:
            ValueError: If `Y` does not match the design size.
            ModelError: If every base row contains a rejected evaluation.
        """
        D = problem.num_vars
        Y = np.asarray(Y, dtype=float)
        if Y.size == 0 or Y.size % (D + 2) != 0:
            raise ValueError(
                f"Expected a multiple of {D + 2} outputs for {D} parameters, got {Y.size}"
            )

        # Whole base rows are dropped so the remaining design stays consistent
        blocks = Y.reshape(-1, D + 2)
        valid = np.all(np.isfinite(blocks), axis=1)
        if not valid.any():
            raise ModelError(f"{metric}: every base row contains a rejected evaluation")
        if not valid.all():
            logging.warning(
                f"{metric}: excluding {np.count_nonzero(~valid)} of {valid.size} "
                "base rows with rejected evaluations."
            )
        Y = blocks[valid].ravel()

        if np.all(Y == Y[0]):
            logging.warning(f"{metric}: output has no variance, indices are undefined.")
            return SobolResult.no_variance(metric, problem.names, Y)

        si = asobol.analyze(
            problem.to_dict(),
            Y,
            calc_second_order=False,
            num_resamples=num_resamples,
            conf_level=conf_level,
            print_to_console=False,
            seed=seed,
        )

        return SobolResult(
            metric=metric,
            names=list(problem.names),
            S1=np.clip(si['S1'], 0, 1),
            S1_conf=np.asarray(si['S1_conf']),
            ST=np.clip(si['ST'], 0, 1),
            ST_conf=np.asarray(si['ST_conf']),
            outputs=Y,
        )

    def _analyze(
        self,
        outputs: dict[str, np.ndarray],
        problem: SensitivityAnalysisProblem
    ) -> SensitivityResults:
        """Run `analyze_output` once per metric."""
        results = SensitivityResults()
        for name, Y in outputs.items():
            logging.info(f"Analyzing indices for {name}.")
            results[name] = self.analyze_output(
                name,
                Y,
                problem,
                num_resamples=self.config.num_resamples,
                conf_level=self.config.conf_level,
                seed=self.config.seed,
            )
        return results

    def run(
        self,
        out_dir: str = None,
        X1: pd.DataFrame = None,
        X2: pd.DataFrame = None
    ) -> SensitivityResults:
        """Execute the complete sensitivity analysis workflow.

        1. Validate the model configuration (fails before any sampling)
        2. Draw X1 and X2, unless both are supplied
        3. Build the Saltelli design and evaluate every row
        4. Estimate indices for each metric separately
        5. With `out_dir`, save samples, outputs, index tables and plots

        Args:
            out_dir (str, optional): Directory receiving `sa_results/` and
                `plots/` subdirectories. Nothing is written when omitted.
            X1 (pd.DataFrame, optional): First base matrix.
            X2 (pd.DataFrame, optional): Second base matrix, same shape as X1.

        Returns:
            SensitivityResults: One `SobolResult` per metric.

        Raises:
            InvalidParameter: If the baseline configuration is invalid.
            NumericalInstability: If any model integration fails.
            ValueError: If only one of X1 and X2 is given.
        """
        if (X1 is None) != (X2 is None):
            raise ValueError("X1 and X2 must be supplied together")

        self.model.check_configuration(self.config.space)

        plt_dir = res_dir = None
        if out_dir is not None:
            plt_dir = os.path.join(out_dir, "plots")
            res_dir = os.path.join(out_dir, "sa_results")

            logging.info(f"Plots will be saved in: {plt_dir}")
            logging.info(f"Results will be saved in: {res_dir}")

            os.makedirs(plt_dir, exist_ok=True)
            os.makedirs(res_dir, exist_ok=True)

        if X1 is None:
            X1, X2 = self._get_samples(res_dir)

        design = saltelli_design(X1, X2)
        outputs = self.evaluate(design)

        if res_dir is not None:
            pd.concat([design, pd.DataFrame(outputs)], axis=1).to_csv(
                os.path.join(res_dir, "model_output.csv"), index=False
            )

        problem = SensitivityAnalysisProblem.from_samples(X1, X2)
        results = self._analyze(outputs, problem)

        if res_dir is not None:
            results.save(res_dir)

        if plt_dir is not None:
            self.plot(results, outputs, problem, plt_dir)

        return results

    @staticmethod
    def base_outputs(outputs: dict[str, np.ndarray], num_vars: int) -> dict[str, np.ndarray]:
        """Metric values of the X1 rows only: one i.i.d. draw per base row."""
        return {
            name: np.asarray(Y, dtype=float)[::num_vars + 2]
            for name, Y in outputs.items()
        }

    @staticmethod
    def plot_metric_boxplot(outputs: dict[str, np.ndarray]) -> plt.Figure:
        """Boxplot of the sampled distribution of each metric.

        Each metric gets its own panel since their units differ. NaN values
        (rejected runs) are left out.

        Args:
            outputs (dict[str, np.ndarray]): Metric name to sampled values.

        Returns:
            plt.Figure: The figure. The caller closes it.
        """
        fig, axes = plt.subplots(1, len(outputs), figsize=(5 * len(outputs), 6), squeeze=False)

        for ax, (name, values) in zip(axes[0], outputs.items()):
            values = np.asarray(values, dtype=float)
            ax.boxplot(values[np.isfinite(values)])
            ax.set_xticks([1])
            ax.set_xticklabels([name])
            ax.set_title(f'Distribution of {name}')
            ax.grid(True)

        fig.tight_layout()
        return fig

    @staticmethod
    def plot_indices(results: SensitivityResults) -> plt.Figure:
        """Bar chart of first-order and total-effect indices per metric.

        Metrics with no variance are shown as an empty panel with a note.

        Returns:
            plt.Figure: The figure. The caller closes it.
        """
        fig, axes = plt.subplots(len(results), 1, figsize=(10, 4 * len(results)), squeeze=False)

        for ax, (name, res) in zip(axes[:, 0], results.items()):
            x = np.arange(len(res.names))
            ax.set_xticks(x)
            ax.set_xticklabels(res.names)
            ax.set_title(f'Sobol Indices for {name}')
            ax.set_ylabel('Sobol Index')
            ax.grid(True)

            if res.status is IndexStatus.NO_VARIANCE:
                ax.text(0.5, 0.5, 'No output variance: indices undefined',
                        ha='center', va='center', transform=ax.transAxes)
                continue

            ax.bar(x - 0.2, res.S1, width=0.4, yerr=res.S1_conf, label='First-order (S1)')
            ax.bar(x + 0.2, res.ST, width=0.4, yerr=res.ST_conf, label='Total-effect (ST)')
            ax.set_ylim(0, 1.05)
            ax.legend()

        fig.tight_layout()
        return fig

    def plot(
        self,
        results: SensitivityResults,
        outputs: dict[str, np.ndarray],
        problem: SensitivityAnalysisProblem,
        plt_dir: str
    ):
        """Save the index bar chart and the metric boxplot as PNG files."""
        logging.info("Creating plots.")

        fig = self.plot_indices(results)
        fig.savefig(os.path.join(plt_dir, "sobol_indices.png"))
        plt.close(fig)

        fig = self.plot_metric_boxplot(self.base_outputs(outputs, problem.num_vars))
        fig.savefig(os.path.join(plt_dir, "metric_boxplot.png"))
        plt.close(fig)
