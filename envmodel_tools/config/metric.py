"""
# Metric Configuration

Selects which scalar metrics are extracted from every model run.

## Example Usage

```python
from envmodel_tools.config.metric import MetricConfig

config = MetricConfig.from_dict({
    'metrics': ['max_growth', 'threshold_year'],
    'params': ['C', 'C']
})

[m.name for m in config.metrics]   # ['max_growth', 'threshold_year']
```
"""

from envmodel_tools.utils.metric import Metric
from dataclasses import dataclass


@dataclass
class MetricConfig:
    """
    Metrics to compute from each model output.

    Attributes:
        metrics (list[Metric]): Metric instances, in reporting order.
    """
    metrics: list[Metric]

    @property
    def names(self) -> list[str]:
        return [metric.name for metric in self.metrics]

    @classmethod
    def from_dict(cls, data: dict):
        """
        Create a MetricConfig from a dictionary specification.

        Args:
            data (dict): Configuration dictionary with keys:
                - 'metrics' (list[str]): Metric names (e.g. 'max_growth')
                - 'params' (list[str]): Output column each metric reads

        Returns:
            MetricConfig: Configured instance.

        Raises:
            ValueError: If a metric name is unknown or the two lists differ
                in length.
        """
        params = data.get("params", [])
        metrics = data.get("metrics", [])
        if len(params) != len(metrics):
            raise ValueError("'metrics' and 'params' must have the same length")
        return cls(metrics=[Metric.from_name(m, p) for m, p in zip(metrics, params)])

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "metrics": [metric.name for metric in self.metrics],
            "params": [metric.output_name for metric in self.metrics],
        }
