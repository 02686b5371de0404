import numpy as np
import pandas as pd
import pytest

from envmodel_tools.almond import AlmondParameters, almond_profit, almond_yield_anomaly


def make_climate():
    rows = []
    # 2000: February tmin 10 C, January precip totals 5 mm
    for day in range(1, 6):
        rows.append({"year": 2000, "month": 1, "tmin_c": 0.0, "precip": 1.0})
    for day in range(1, 5):
        rows.append({"year": 2000, "month": 2, "tmin_c": 8.0 + day % 2 * 4, "precip": 9.0})
    # 2001: February tmin 5 C, no January precipitation
    rows.append({"year": 2001, "month": 1, "tmin_c": 3.0, "precip": 0.0})
    rows.append({"year": 2001, "month": 2, "tmin_c": 5.0, "precip": 2.0})
    # 2002: no February record
    rows.append({"year": 2002, "month": 1, "tmin_c": 3.0, "precip": 4.0})
    return pd.DataFrame(rows)


def test_yield_anomaly():
    yields = almond_yield_anomaly(make_climate())

    assert list(yields.columns) == ["year", "yield_anomaly"]
    assert list(yields["year"]) == [2000, 2001]

    expected_2000 = 0.28 - 0.015 * 10 - 0.0046 * 100 - 0.07 * 5 + 0.0043 * 25
    expected_2001 = 0.28 - 0.015 * 5 - 0.0046 * 25
    np.testing.assert_allclose(yields["yield_anomaly"], [expected_2000, expected_2001])


def test_yield_anomaly_year_without_january():
    clim = pd.DataFrame({"year": [2003], "month": [2], "tmin_c": [5.0], "precip": [1.0]})
    yields = almond_yield_anomaly(clim)

    assert list(yields["year"]) == [2003]
    assert yields["yield_anomaly"].iloc[0] == pytest.approx(0.28 - 0.015 * 5 - 0.0046 * 25)


def test_yield_anomaly_missing_values_drop_year():
    clim = pd.DataFrame({
        "year": [2004, 2004, 2004, 2005, 2005, 2006, 2006],
        "month": [1, 2, 2, 1, 2, 1, 2],
        "tmin_c": [0.0, 5.0, np.nan, 0.0, 5.0, 0.0, 5.0],
        "precip": [1.0, 0.0, 0.0, np.nan, 0.0, 2.0, 0.0],
    })
    yields = almond_yield_anomaly(clim)

    assert list(yields["year"]) == [2006]


def test_yield_anomaly_custom_parameters():
    params = AlmondParameters(intercept=1.0, a=0.0, b=0.0, c=0.0, d=0.0)
    yields = almond_yield_anomaly(make_climate(), params)
    assert (yields["yield_anomaly"] == 1.0).all()

    yields = almond_yield_anomaly(make_climate(), {"intercept": 0.0})
    assert yields["yield_anomaly"].iloc[1] == pytest.approx(-0.015 * 5 - 0.0046 * 25)


def test_yield_anomaly_missing_column():
    with pytest.raises(ValueError):
        almond_yield_anomaly(make_climate().drop(columns="precip"))


def test_profit():
    yields = pd.DataFrame({"year": [2000, 2001], "yield_anomaly": [-0.5725, 0.1]})
    profit = almond_profit(yields, base_yield=1.0, price=4000, total_cost=3800, acres=100)

    assert list(profit.columns) == ["year", "profit"]
    np.testing.assert_allclose(profit["profit"], [-209000.0, 60000.0])
