"""
# Utilities

Helpers shared across the envmodel_tools package.

## Components

- **metric**: Trajectory metrics and streamflow skill metrics
- **distributions**: SciPy distributions for sampling uncertain parameters
- **results**: Containers for evaluation and sensitivity analysis results

## Example Usage

```python
from envmodel_tools.utils.metric import Metric, compute_lowflowduration_all
from envmodel_tools.utils.distributions import get_scipy_normal
from envmodel_tools.utils.results import SensitivityResults, IndexStatus

metric = Metric.from_name("max_growth", "C")
dist = get_scipy_normal(loc=250, scale=25)
```
"""
