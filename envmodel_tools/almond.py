"""
# Almond Yield Model

Climate-driven almond yield anomaly (Lobell et al., 2006) and the resulting
farm profit.

The yield anomaly of a year depends on the mean daily minimum temperature in
February (`T`, degrees C) and the total January precipitation (`P`, mm):

    anomaly = intercept + a*T + b*T^2 + c*P + d*P^2       (tons/acre)

## Example Usage

```python
import pandas as pd
from envmodel_tools.almond import almond_yield_anomaly, almond_profit

clim = pd.read_table("clim.txt", sep=r"\\s+")
yields = almond_yield_anomaly(clim)
profit = almond_profit(yields, base_yield=1.0, price=4000, total_cost=3800, acres=100)
```

Reference:
    Lobell, D. B., Field, C. B., Cahill, K. N. and Bonfils, C. (2006). Impacts
    of future climate change on California perennial crop yields: Model
    projections with climate and crop uncertainties. Agricultural and Forest
    Meteorology, 141(2-4), 208-218.
"""

from dataclasses import dataclass, asdict

import pandas as pd


@dataclass(frozen=True)
class AlmondParameters:
    """
    Coefficients of the almond yield anomaly regression.

    Defaults are the almond coefficients of Lobell et al. (2006), Table 2.
    """
    intercept: float = 0.28
    a: float = -0.015
    b: float = -0.0046
    c: float = -0.07
    d: float = 0.0043

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


CLIMATE_COLUMNS = ["year", "month", "tmin_c", "precip"]


def almond_yield_anomaly(
    clim: pd.DataFrame,
    params: AlmondParameters | dict = None
) -> pd.DataFrame:
    """
    Yearly almond yield anomaly from daily climate records.

    Args:
        clim (pd.DataFrame): Daily climate with columns `year`, `month`,
            `tmin_c` (minimum temperature, C) and `precip` (mm).
        params (AlmondParameters | dict, optional): Regression coefficients.
            Defaults to `AlmondParameters()`.

    Returns:
        pd.DataFrame: Columns `year` and `yield_anomaly` (tons/acre), in order
            of first appearance of each year. Years without February records,
            or with a missing February temperature or January precipitation
            value, are dropped. A year without January records counts as
            zero January precipitation.

    Raises:
        ValueError: If a required climate column is missing.
    """
    missing = [col for col in CLIMATE_COLUMNS if col not in clim.columns]
    if missing:
        raise ValueError(f"Climate data is missing columns: {missing}")

    if params is None:
        params = AlmondParameters()
    elif isinstance(params, dict):
        params = AlmondParameters(**params)

    years = pd.Index(clim["year"].unique(), name="year")

    feb = clim[clim["month"] == 2]
    jan = clim[clim["month"] == 1]
    # A missing value inside a month makes the aggregate NaN, so the year is dropped
    tmin_feb = (
        feb.groupby("year")["tmin_c"]
        .agg(lambda s: s.mean(skipna=False))
        .reindex(years)
    )
    # A year without January records has no precipitation, not a missing one
    precip_jan = (
        jan.groupby("year")["precip"]
        .agg(lambda s: s.sum(skipna=False))
        .reindex(years, fill_value=0.0)
    )

    anomaly = (
        params.intercept
        + params.a * tmin_feb
        + params.b * tmin_feb ** 2
        + params.c * precip_jan
        + params.d * precip_jan ** 2
    )

    return (
        anomaly.rename("yield_anomaly")
        .dropna()
        .reset_index()
    )


def almond_profit(
    yields: pd.DataFrame,
    base_yield: float,
    price: float,
    total_cost: float,
    acres: float
) -> pd.DataFrame:
    """
    Yearly almond profit from yield anomalies.

    profit = (base_yield + yield_anomaly) * price * acres - total_cost * acres

    Args:
        yields (pd.DataFrame): Output of `almond_yield_anomaly` (columns
            `year` and `yield_anomaly`).
        base_yield (float): Baseline yield (tons/acre).
        price (float): Almond price ($/ton).
        total_cost (float): Production cost ($/acre).
        acres (float): Planted area (acres).

    Returns:
        pd.DataFrame: Columns `year` and `profit` ($).
    """
    revenue = (base_yield + yields["yield_anomaly"]) * price * acres
    return pd.DataFrame({
        "year": yields["year"].to_numpy(),
        "profit": (revenue - total_cost * acres).to_numpy(),
    })
