"""
# Configuration Management

Configuration classes for metrics and parameter sampling spaces.

## Components

- **MetricConfig**: Metrics extracted from every model run
- **SpaceConfig**: Marginal distributions of uncertain parameters

## Example Usage

```python
from envmodel_tools.config import MetricConfig, SpaceConfig
from envmodel_tools.utils.distributions import DISTRIBUTIONS

metric_config = MetricConfig.from_dict({
    'metrics': ['max_growth', 'threshold_year'],
    'params': ['C', 'C']
})

space_config = SpaceConfig.from_dict(DISTRIBUTIONS, {
    'pre_closure_rate': ['normal', [0.01, 0.001]],
    'post_closure_rate': ['normal', [2.0, 0.2]]
})
```
"""

from .metric import *
from .space import *
