"""
Tests for continuous / censored / categorical VPC assembly
(viz/continuous.py through plot_vpc).
"""

import itertools

import pytest

from conftest import BINS, make_aggr_obs, make_vpc_dat


def categories(spec):
    return set(spec.categories)


class TestSimulatedBands:
    """Simulated median, percentile lines and confidence bands."""

    def test_default_stack(self, continuous_bundle):
        """Test the default show options."""
        from neovpc.viz import plot_vpc

        spec = plot_vpc(continuous_bundle)

        assert spec.categories == ("sim_median_ci", "pi_ci", "obs_median", "obs_ci", "bin_sep")
        assert len(spec.layers_of("pi_ci")) == 2
        assert len(spec.layers_of("obs_ci")) == 2

    def test_sim_median_line(self, continuous_bundle):
        """Test the simulated median line uses the sim_median theme."""
        from neovpc.viz import plot_vpc, LayerKind

        spec = plot_vpc(continuous_bundle, show={"sim_median": True})
        (layer,) = spec.layers_of("sim_median")

        assert layer.kind is LayerKind.LINE
        assert layer.aes["y"] == "q50_med"
        assert layer.style.linetype == "dashed"

    def test_pi_lines(self, continuous_bundle):
        """Test outer percentile lines."""
        from neovpc.viz import plot_vpc

        spec = plot_vpc(continuous_bundle, show={"pi": True})

        assert [l.aes["y"] for l in spec.layers_of("pi")] == ["q5_med", "q95_med"]
        assert all(l.style.linetype == "dotted" for l in spec.layers_of("pi"))

    def test_pi_as_area(self, continuous_bundle):
        """Test the area between the outer simulated percentiles."""
        from neovpc.viz import plot_vpc, LayerKind

        spec = plot_vpc(continuous_bundle, show={"pi_as_area": True})
        (layer,) = spec.layers_of("pi_area")

        assert layer.kind is LayerKind.RIBBON
        assert (layer.aes["ymin"], layer.aes["ymax"]) == ("q5_med", "q95_med")
        assert layer.style.alpha == 0.3

    @pytest.mark.parametrize(
        "sim_median_ci,pi,pi_ci",
        list(itertools.product([True, False], repeat=3)),
    )
    def test_pi_as_area_is_exclusive(self, continuous_bundle, sim_median_ci, pi, pi_ci):
        """Test pi_as_area suppresses pi, pi_ci and sim_median_ci."""
        from neovpc.viz import plot_vpc

        show = {"pi_as_area": True, "sim_median_ci": sim_median_ci, "pi": pi, "pi_ci": pi_ci}
        for smooth in (True, False):
            spec = plot_vpc(continuous_bundle, show=show, smooth=smooth)
            assert not categories(spec) & {"pi", "pi_ci", "sim_median_ci"}
            assert "pi_area" in categories(spec)

    def test_missing_confidence_bounds(self):
        """Test bands needing absent *_low/*_up columns are dropped without error."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc

        bundle = ResultBundle(modality="continuous",
                              simulated_summary=make_vpc_dat(with_ci=False),
                              observed_summary=make_aggr_obs(), bins=BINS)
        spec = plot_vpc(bundle, show={"pi": True})

        assert "sim_median_ci" not in categories(spec)
        assert "pi_ci" not in categories(spec)
        assert "pi" in categories(spec)


class TestObservedLayers:
    """Observed median, percentile lines and points."""

    def test_missing_observed_bounds(self):
        """Test obs_ci without obs5/obs95 keeps the median and drops the CI lines."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc

        bundle = ResultBundle(modality="continuous", simulated_summary=make_vpc_dat(),
                              observed_summary=make_aggr_obs(with_ci=False), bins=BINS)
        spec = plot_vpc(bundle, show={"obs_ci": True, "obs_median": True})

        assert "obs_median" in categories(spec)
        assert "obs_ci" not in categories(spec)

    def test_obs_dv_points(self, continuous_bundle):
        """Test observed points use the obs theme."""
        from neovpc.viz import plot_vpc, LayerKind

        spec = plot_vpc(continuous_bundle, show={"obs_dv": True})
        (layer,) = spec.layers_of("obs_dv")

        assert layer.kind is LayerKind.POINT
        assert layer.source == "observed_raw"
        assert (layer.aes["x"], layer.aes["y"]) == ("idv", "dv")
        assert layer.style.alpha == 0.7

    @pytest.mark.parametrize("flag", ["obs_dv", "obs_median", "obs_ci", "sim_median", "bin_sep"])
    def test_flag_independence(self, continuous_bundle, flag):
        """Test toggling one flag only adds or removes its own category."""
        from neovpc.viz import plot_vpc

        on = plot_vpc(continuous_bundle, show={flag: True})
        off = plot_vpc(continuous_bundle, show={flag: False})

        assert categories(on) - categories(off) == {flag}
        assert [l for l in on.layers if l.category != flag] == list(off.layers)

    def test_simulation_only(self):
        """Test a bundle without observations."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc

        bundle = ResultBundle(modality="categorical", simulated_summary=make_vpc_dat(), bins=BINS)
        spec = plot_vpc(bundle, show={"obs_dv": True})

        assert not categories(spec) & {"obs_median", "obs_ci", "obs_dv"}
        assert "observed_summary" not in spec.data


class TestRendering:
    """Smooth/non-smooth and bin separators."""

    def test_smooth_symmetry(self, continuous_bundle):
        """Test the same logical bands are shown with ribbons or rectangles."""
        from neovpc.viz import plot_vpc, LayerKind

        show = {"sim_median": True, "pi": True}
        smooth = plot_vpc(continuous_bundle, show=show, smooth=True)
        blocky = plot_vpc(continuous_bundle, show=show, smooth=False)

        assert smooth.categories == blocky.categories
        assert {l.kind for l in smooth.layers_of("pi_ci")} == {LayerKind.RIBBON}
        assert {l.kind for l in blocky.layers_of("pi_ci")} == {LayerKind.RECT}
        assert blocky.layers_of("pi_ci")[0].aes["xmin"] == "bin_min"
        assert smooth.layers_of("pi_ci")[0].aes["x"] == "bin_mid"

    def test_bin_separators(self, continuous_bundle):
        """Test rug ticks along the top axis at the bin boundaries."""
        from neovpc.viz import plot_vpc, LayerKind

        spec = plot_vpc(continuous_bundle)
        (layer,) = spec.layers_of("bin_sep")

        assert layer.kind is LayerKind.RUG
        assert layer.params["sides"] == "t"
        assert list(spec.frame(layer)["x"]) == BINS

    def test_no_separators_sentinel(self):
        """Test bins=False suppresses separators."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc

        bundle = ResultBundle(modality="continuous", simulated_summary=make_vpc_dat(), bins=False)
        spec = plot_vpc(bundle, show={"bin_sep": True})

        assert "bin_sep" not in categories(spec)


class TestStratifiedContinuous:
    """Stratified continuous VPCs."""

    def test_single_stratification(self):
        """Test one variable facets on 'strat' and groups layers by stratum."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc, FacetKind

        strata = [{"strat": "SEX=1"}, {"strat": "SEX=2"}]
        bundle = ResultBundle(modality="continuous",
                              simulated_summary=make_vpc_dat(strata=strata),
                              observed_summary=make_aggr_obs(strata=strata),
                              bins=BINS, stratify=["SEX"], facet="rows")
        spec = plot_vpc(bundle)

        assert spec.facet.kind is FacetKind.GRID_ROW
        assert spec.strip_labels["strat"] == "SEX"
        assert spec.layers_of("obs_median")[0].aes["group"] == "strat"
        assert spec.hue is None

    def test_color_stratification(self):
        """Test colour stratification maps the second variable to hue."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc, FacetKind

        strata = [{"strat": f"{s}, {d}", "strat1": s, "strat2": d}
                  for s in ("M", "F") for d in ("A", "B")]
        bundle = ResultBundle(modality="continuous",
                              observed_summary=make_aggr_obs(strata=strata),
                              bins=BINS, stratify=["SEX", "DRUG"], stratify_color="DRUG")
        spec = plot_vpc(bundle)

        assert spec.facet.kind is FacetKind.WRAP
        assert spec.facet.cols == "strat1"
        assert spec.hue == "strat2"
        assert spec.colour_legend == ""

    def test_two_variable_grid(self):
        """Test two panel variables give a two-way grid."""
        from neovpc import ResultBundle
        from neovpc.viz import plot_vpc, FacetKind

        strata = [{"strat": f"{s}, {d}", "strat1": s, "strat2": d}
                  for s in ("M", "F") for d in ("A", "B")]
        bundle = ResultBundle(modality="continuous",
                              simulated_summary=make_vpc_dat(strata=strata),
                              bins=BINS, stratify=["SEX", "DRUG"], facet="columns")
        spec = plot_vpc(bundle)

        assert spec.facet.kind is FacetKind.GRID_BOTH
        assert (spec.facet.rows, spec.facet.cols) == ("strat2", "strat1")

    def test_stratification_failure(self):
        """Test unresolvable stratification aborts without a plot."""
        from neovpc import ResultBundle, StratificationError
        from neovpc.viz import plot_vpc

        bundle = ResultBundle(modality="continuous", simulated_summary=make_vpc_dat(),
                              bins=BINS, stratify=["a", "b"])

        with pytest.raises(StratificationError, match="Stratification unsuccessful"):
            plot_vpc(bundle)
