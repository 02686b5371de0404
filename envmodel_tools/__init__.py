"""
# envmodel_tools

Models and analysis tools for environmental systems:

- **Forest Growth**: Piecewise exponential/saturating forest carbon model
  integrated with SciPy
- **Sensitivity Analysis**: Sobol first-order and total-effect indices of
  model metrics, with SALib
- **Crop and Energy Models**: Almond yield anomaly and profit, photovoltaic
  energy output
- **Streamflow Metrics**: Low flow duration and Nash-Sutcliffe skill scores

## Main Components

- `Model`: Base class for model execution and evaluation
- `ForestGrowthModel`: Forest growth model implementation
- `forest`: Growth rate function, parameters and integrator
- `sa`: Sensitivity analysis
- `config`: Metric and parameter space configuration
- `almond`, `solar`: Crop yield and photovoltaic models
- `utils`: Metrics, distributions and result containers

## Example Usage

```python
import numpy as np
from envmodel_tools import ForestGrowthModel
from envmodel_tools.forest import ForestParameters

model = ForestGrowthModel(run_kwargs={
    'params': ForestParameters.baseline(),
    'initial_stock': 10.0,
    'times': np.arange(0, 301),
})
trajectory = model.get_objective()()
fig = ForestGrowthModel.plot_trajectory(trajectory)
```
"""

from .model import *
