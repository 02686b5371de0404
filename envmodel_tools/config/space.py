"""
# Parameter Space Configuration

Configuration classes describing the marginal distribution of each uncertain
model parameter.

## Classes

- `SampleSpace`: A distribution factory and its parameters
- `SpaceConfig`: Mapping from parameter name to `SampleSpace`

## Example Usage

```python
from envmodel_tools.config.space import SpaceConfig
from envmodel_tools.utils.distributions import DISTRIBUTIONS

space_config = SpaceConfig.from_dict(DISTRIBUTIONS, {
    'pre_closure_rate': ['normal', [0.01, 0.001]],
    'carrying_capacity': ['normal', [250, 25]]
})

dists = space_config.get_search_space()
dists['carrying_capacity'].mean()   # 250.0
```
"""

from typing import Callable

from dataclasses import dataclass


@dataclass
class SampleSpace:
    """
    A distribution factory together with its arguments.

    Attributes:
        kind (str): Name of the distribution as written in configuration
            files (e.g. 'normal').
        distribution (Callable): Factory returning a frozen SciPy distribution.
        parameters (tuple[float]): Positional arguments of the factory.
    """
    kind: str
    distribution: Callable
    parameters: tuple[float]

    def unpack(self):
        """Return `(distribution, parameters)`."""
        return (self.distribution, self.parameters)


class SpaceConfig(dict[str, SampleSpace]):
    """
    Sampling space of all uncertain parameters.

    Keys are parameter names and values are `SampleSpace` instances. Key order
    defines the column order of sample matrices.
    """

    @classmethod
    def from_dict(cls, mapping: dict[str, Callable], data: dict):
        """
        Create a SpaceConfig from a distribution mapping and configuration data.

        Args:
            mapping (dict[str, Callable]): Distribution names to factories,
                e.g. `envmodel_tools.utils.distributions.DISTRIBUTIONS`.
            data (dict): Parameter names to `[distribution_name, parameters]`.

        Returns:
            SpaceConfig: Configured instance.

        Raises:
            ValueError: If a distribution name is not found in `mapping`.
        """
        space_config = {}
        for k, v in data.items():
            dist_type = v[0].lower()
            params = v[1]
            if dist_type not in mapping:
                raise ValueError(f"Unknown distribution type: {dist_type}")
            space_config[k] = SampleSpace(
                kind=dist_type,
                distribution=mapping[dist_type],
                parameters=tuple(params)
            )
        return cls(space_config)

    def to_dict(self) -> dict[str, list]:
        """Inverse of `from_dict`, suitable for JSON serialization."""
        return {
            name: [space.kind, list(space.parameters)]
            for name, space in self.items()
        }

    def get_search_space(self):
        """
        Instantiate every distribution.

        Returns:
            dict[str, scipy.stats.rv_frozen]: Parameter names to frozen
                distributions. Each call creates new instances.
        """
        space = {}
        for param_name, samplespace in self.items():
            sampler, parameters = samplespace.unpack()
            space[param_name] = sampler(*parameters)

        return space
