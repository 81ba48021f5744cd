"""
Pytest configuration for NeoVPC Python tests.

Provides aggregated VPC tables shaped like the output of the upstream
binning/percentile stage, for continuous and time-to-event VPCs.
"""

import matplotlib
import numpy as np
import pandas as pd
import pytest

# Headless rendering; must happen before pyplot is imported anywhere
matplotlib.use("Agg")


BINS = [0.0, 1.0, 2.0, 4.0, 8.0, 12.0, 24.0]


def make_vpc_dat(bins=BINS, strata=None, with_ci=True) -> pd.DataFrame:
    """Simulated percentile-of-percentile table, one row per bin (per stratum)."""
    rows = []
    for stratum in strata or [None]:
        for i, (lo, hi) in enumerate(zip(bins[:-1], bins[1:])):
            mid = (lo + hi) / 2
            base = 50.0 * np.exp(-0.1 * mid)
            row = {
                "bin": i + 1, "bin_min": lo, "bin_max": hi, "bin_mid": mid,
                "q5_med": base * 0.5, "q50_med": base, "q95_med": base * 1.5,
            }
            if with_ci:
                row.update({
                    "q5_low": base * 0.4, "q5_up": base * 0.6,
                    "q50_low": base * 0.9, "q50_up": base * 1.1,
                    "q95_low": base * 1.4, "q95_up": base * 1.6,
                })
            if stratum is not None:
                row.update(stratum)
            rows.append(row)
    return pd.DataFrame(rows)


def make_aggr_obs(bins=BINS, strata=None, with_ci=True) -> pd.DataFrame:
    """Observed percentiles per bin."""
    rows = []
    for stratum in strata or [None]:
        for lo, hi in zip(bins[:-1], bins[1:]):
            mid = (lo + hi) / 2
            base = 48.0 * np.exp(-0.1 * mid)
            row = {"bin_mid": mid, "obs50": base}
            if with_ci:
                row.update({"obs5": base * 0.55, "obs95": base * 1.45})
            if stratum is not None:
                row.update(stratum)
            rows.append(row)
    return pd.DataFrame(rows)


def make_obs(n=40, seed=1) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    idv = np.sort(rng.uniform(0, 24, n))
    return pd.DataFrame({"idv": idv, "dv": 50.0 * np.exp(-0.1 * idv) * rng.lognormal(0, 0.2, n)})


def make_sim_km(bins=BINS, strata=("all",), color=False) -> pd.DataFrame:
    """Simulated Kaplan-Meier band per bin."""
    rows = []
    for stratum in strata:
        for lo, hi in zip(bins[:-1], bins[1:]):
            mid = (lo + hi) / 2
            med = float(np.exp(-0.05 * mid))
            row = {"bin_min": lo, "bin_max": hi, "bin_mid": mid,
                   "qmin": med * 0.9, "qmed": med, "qmax": min(1.0, med * 1.1),
                   "strat": stratum}
            if color:
                row["strat_color"] = stratum
            rows.append(row)
    return pd.DataFrame(rows)


def make_sim_curves(n_replicates=50, bins=BINS, strata=("all",)) -> pd.DataFrame:
    rows = []
    for stratum in strata:
        for i in range(1, n_replicates + 1):
            for mid in [(lo + hi) / 2 for lo, hi in zip(bins[:-1], bins[1:])]:
                rows.append({"bin_mid": mid, "surv": float(np.exp(-0.05 * mid)),
                             "i": i, "strat": stratum})
    return pd.DataFrame(rows)


def make_obs_km(rows_per_stratum=None, color=False) -> pd.DataFrame:
    """Observed KM curve; rows_per_stratum maps stratum -> number of rows."""
    rows = []
    for stratum, n in (rows_per_stratum or {"all": 6}).items():
        for t in np.linspace(0, 20, n):
            surv = float(np.exp(-0.05 * t))
            row = {"time": t, "surv": surv, "lower": surv * 0.9,
                   "upper": min(1.0, surv * 1.1), "strat": stratum}
            if color:
                row["strat_color"] = stratum
            rows.append(row)
    return pd.DataFrame(rows)


@pytest.fixture
def continuous_bundle():
    from neovpc import ResultBundle

    return ResultBundle(
        modality="continuous",
        simulated_summary=make_vpc_dat(),
        observed_summary=make_aggr_obs(),
        observed_raw=make_obs(),
        bins=BINS,
    )


@pytest.fixture
def tte_bundle():
    from neovpc import ResultBundle

    return ResultBundle(
        modality="time-to-event",
        simulated_km_summary=make_sim_km(),
        simulated_survival_curves=make_sim_curves(),
        observed_km_summary=make_obs_km(),
        censoring_points=pd.DataFrame({"time": [3.0, 7.5], "y": [0.85, 0.7], "strat": ["all", "all"]}),
        bins=BINS,
        pre_merge_bins=[0.0, 0.5, 1.0, 2.0, 4.0, 8.0, 12.0, 24.0],
    )


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "render: mark test as drawing a figure with a plotting backend"
    )
