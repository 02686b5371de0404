"""
# Sensitivity Analysis

Variance-based (Sobol) global sensitivity analysis of model metrics.

## Components

- `SensitivityAnalysis`: Sampling, model evaluation and index estimation
- `SensitivityAnalysisConfig`: Sampling space, metrics and run settings
- `SensitivityAnalysisProblem`: Problem definition passed to SALib
- `get_base_samples`, `saltelli_design`: Base matrices and evaluation design

## Example Usage

```python
from envmodel_tools import ForestGrowthModel
from envmodel_tools.forest import ForestParameters
from envmodel_tools.sa import SensitivityAnalysis, SensitivityAnalysisConfig

config = SensitivityAnalysisConfig.reference(samples=1000)
model = ForestGrowthModel(
    run_kwargs=config.run_kwargs(ForestParameters.baseline()),
    eval_kwargs=config.eval_kwargs()
)

results = SensitivityAnalysis(model, config).run()

results.first_order()   # S, one column per metric
results.total_order()   # T, one column per metric
```
"""

from .sa import *
from .config import *
from .sampling import *
