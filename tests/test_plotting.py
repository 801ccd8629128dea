"""Tests for Plotly spectrum plots."""

import numpy as np
import pytest

from axion_spectrum.errors import OutOfRangeError
from axion_spectrum.plotting import plot_spectrum, plot_spectrum_errors
from axion_spectrum.spectrum import SingleSpectrum
from axion_spectrum.units import Units


@pytest.fixture
def spec():
    s = SingleSpectrum.blank(10, 4000.0, 4010.0, units=Units.EXCESS_POWER)
    s.set_power(np.arange(10, dtype=float), np.full(10, 0.5))
    return s


class TestPlotSpectrum:
    """Line plot of every bin."""

    def test_figure(self, spec) -> None:
        fig = plot_spectrum(spec, title="Run 44", show=False)
        trace = fig.data[0]
        assert list(trace.x) == pytest.approx(spec.frequencies().tolist())
        assert list(trace.y) == spec.power.tolist()
        assert fig.layout.title.text == "Run 44"
        assert "Excess Power in Cavity" in fig.layout.yaxis.title.text

    def test_save_html(self, spec, tmp_path) -> None:
        out = tmp_path / "spectrum.html"
        plot_spectrum(spec, show=False, output=out)
        assert out.exists()
        assert "plotly" in out.read_text().lower()


class TestPlotSpectrumErrors:
    """Decimated plot with error bars."""

    def test_decimation(self, spec) -> None:
        fig = plot_spectrum_errors(spec, 3, show=False)
        trace = fig.data[0]
        assert list(trace.y) == [0.0, 3.0, 6.0, 9.0]
        assert list(trace.error_y.array) == [0.5] * 4

    def test_every_point(self, spec) -> None:
        fig = plot_spectrum_errors(spec, 10, show=False)
        assert len(fig.data[0].x) == 10

    def test_too_many_points(self, spec) -> None:
        with pytest.raises(OutOfRangeError):
            plot_spectrum_errors(spec, 11, show=False)

    def test_zero_points(self, spec) -> None:
        with pytest.raises(ValueError):
            plot_spectrum_errors(spec, 0, show=False)
