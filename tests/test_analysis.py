"""Tests for the spectrum collection, grand spectrum and limits."""

import numpy as np
import pytest

from axion_spectrum import physics
from axion_spectrum.analysis import (
    Extent,
    Spectrum,
    combine_inverse_variance,
    reduce_extents,
    spectrum_extent,
)
from axion_spectrum.errors import EmptyCollectionError, InvalidStateError, OutOfRangeError
from axion_spectrum.spectrum import SingleSpectrum
from axion_spectrum.units import Units


def _axion(power, uncertainty, min_freq, max_freq, units=Units.AXION_POWER):
    spec = SingleSpectrum.blank(len(power), min_freq, max_freq, units=units)
    spec.set_power(power, uncertainty)
    return spec


class TestCollection:
    """Membership management."""

    def test_append_and_at(self) -> None:
        a = _axion([1.0], [1.0], 0.0, 1.0)
        b = _axion([2.0], [1.0], 0.0, 1.0)
        run = Spectrum()
        run += a
        run.append(b)
        assert run.size() == 2
        assert len(run) == 2
        assert run.at(1) is b
        assert list(run) == [a, b]

    def test_at_out_of_range(self) -> None:
        run = Spectrum([_axion([1.0], [1.0], 0.0, 1.0)])
        with pytest.raises(OutOfRangeError):
            run.at(1)
        with pytest.raises(OutOfRangeError):
            run.at(-1)

    def test_remove_by_power(self) -> None:
        a = _axion([1.0, 2.0], [1.0, 1.0], 0.0, 2.0)
        b = _axion([5.0, 6.0], [1.0, 1.0], 0.0, 2.0)
        run = Spectrum([a, b, a.copy()])
        run -= _axion([1.0, 2.0], [9.0, 9.0], 100.0, 102.0)
        assert run.size() == 2
        assert run.at(0) is b

    def test_remove_missing_is_noop(self) -> None:
        run = Spectrum([_axion([1.0], [1.0], 0.0, 1.0)])
        run.remove(_axion([7.0], [1.0], 0.0, 1.0))
        assert run.size() == 1

    def test_clear(self) -> None:
        run = Spectrum([_axion([1.0], [1.0], 0.0, 1.0)] * 3)
        run.clear()
        assert run.size() == 0

    def test_batch_conversions(self, small_raw) -> None:
        run = Spectrum([SingleSpectrum(small_raw), SingleSpectrum(small_raw)])
        run.initial_bin(32)
        run.watts_to_excess_power()
        run.lorentzian_weight()
        run.ksvz_weight()
        assert all(spec.units is Units.AXION_POWER for spec in run)
        assert all(spec.size() == 63 for spec in run)

    def test_batch_conversion_guard(self, small_raw) -> None:
        run = Spectrum([SingleSpectrum(small_raw)])
        with pytest.raises(InvalidStateError):
            run.dbm_to_watts()


class TestExtents:
    """Coverage reduction."""

    def test_reduce(self) -> None:
        merged = reduce_extents([Extent(3.0, 5.0, 10), Extent(1.0, 4.0, 7)])
        assert merged == Extent(1.0, 5.0, 17)

    def test_reduce_empty(self) -> None:
        with pytest.raises(EmptyCollectionError):
            reduce_extents([])

    def test_spectrum_extent(self) -> None:
        spec = _axion([1.0] * 4, [1.0] * 4, 10.0, 14.0)
        assert spectrum_extent(spec) == Extent(10.0, 14.0, 4)

    def test_combine_inverse_variance(self) -> None:
        power, sigma = combine_inverse_variance(1.0, 1.0, 4.0, 2.0)
        assert power == pytest.approx(1.6)
        assert sigma == pytest.approx(np.sqrt(0.8))


class TestGrandSpectrum:
    """Inverse-variance combination of the members."""

    def test_single_member_is_copied(self) -> None:
        power = [0.5, -1.0, 2.0, 3.0, 1.5]
        member = _axion(power, [0.1, 0.2, 0.3, 0.4, 0.5], 4000.0, 4005.0)
        grand = Spectrum([member]).grand_spectrum()
        assert grand.units is Units.AXION_POWER
        assert grand.power.tolist() == pytest.approx(power)
        assert grand.uncertainty.tolist() == pytest.approx([0.1, 0.2, 0.3, 0.4, 0.5])
        assert grand.min_freq() == pytest.approx(4000.0)
        assert grand.max_freq() == pytest.approx(4005.0)

    def test_disjoint_members_side_by_side(self) -> None:
        a = _axion([1.0, 2.0, 3.0, 4.0], [1.0] * 4, 0.0, 4.0)
        b = _axion([5.0, 6.0, 7.0, 8.0], [2.0] * 4, 4.0, 8.0)
        grand = Spectrum([a, b]).grand_spectrum()
        assert grand.size() == 8
        assert grand.power.tolist() == pytest.approx([1, 2, 3, 4, 5, 6, 7, 8])
        assert grand.uncertainty.tolist() == pytest.approx([1] * 4 + [2] * 4)

    def test_overlap_is_weighted(self) -> None:
        a = _axion([1.0] * 4, [1.0] * 4, 0.0, 4.0)
        b = _axion([4.0] * 4, [2.0] * 4, 0.0, 4.0)
        grand = Spectrum([a, b]).grand_spectrum()
        assert grand.size() == 8
        assert np.allclose(grand.power, 1.6)
        assert np.allclose(grand.uncertainty, np.sqrt(0.8))
        assert np.all(grand.uncertainty <= np.minimum(1.0, 2.0))

    def test_members_unchanged(self) -> None:
        a = _axion([1.0, 2.0], [1.0, 1.0], 0.0, 2.0)
        b = _axion([3.0, 4.0], [1.0, 1.0], 1.0, 3.0)
        run = Spectrum([a, b])
        run.grand_spectrum()
        assert a.power.tolist() == [1.0, 2.0]
        assert b.power.tolist() == [3.0, 4.0]
        assert run.size() == 2

    def test_zero_power_bins_are_copied(self) -> None:
        a = _axion([0.0, 5.0], [1.0, 1.0], 0.0, 2.0)
        b = _axion([3.0, 3.0], [1.0, 1.0], 0.0, 2.0)
        grand = Spectrum([a, b]).grand_spectrum()
        # bins 0 and 1 still hold 0.0 after a, so b is copied there
        assert grand.power.tolist() == pytest.approx([3.0, 3.0, 4.0, 4.0])
        assert grand.uncertainty.tolist() == pytest.approx(
            [1.0, 1.0, np.sqrt(0.5), np.sqrt(0.5)]
        )

    def test_sequential_partial_overlap(self) -> None:
        a = _axion([1.0] * 4, [1.0] * 4, 0.0, 4.0)
        b = _axion([4.0] * 4, [2.0] * 4, 2.0, 6.0)
        c = _axion([9.0] * 2, [3.0] * 2, 1.0, 5.0)
        grand = Spectrum([a, b, c]).grand_spectrum()

        # 10 bins over [0, 6], mid frequencies 0.3, 0.9, ..., 5.7
        assert grand.size() == 10
        ab_c = 1.0 + 0.25 + 1.0 / 9.0
        bc = 0.25 + 1.0 / 9.0
        expected_power = [
            1.0, 1.0,
            1.8,
            3.0 / ab_c, 3.0 / ab_c, 3.0 / ab_c, 3.0 / ab_c,
            2.0 / bc,
            4.0, 4.0,
        ]
        expected_sigma = [
            1.0, 1.0,
            np.sqrt(0.9),
            np.sqrt(1.0 / ab_c), np.sqrt(1.0 / ab_c), np.sqrt(1.0 / ab_c), np.sqrt(1.0 / ab_c),
            np.sqrt(1.0 / bc),
            2.0, 2.0,
        ]
        assert grand.power.tolist() == pytest.approx(expected_power)
        assert grand.uncertainty.tolist() == pytest.approx(expected_sigma)
        assert grand.power[3] == pytest.approx(2.20408, rel=1e-5)
        assert grand.uncertainty[3] == pytest.approx(0.857143, rel=1e-5)

    def test_member_without_bins_is_skipped(self) -> None:
        a = _axion([1.0, 2.0, 3.0, 4.0], [1.0] * 4, 0.0, 4.0)
        empty = SingleSpectrum.blank(0, 1.0, 3.0, units=Units.AXION_POWER)
        grand = Spectrum([a, empty]).grand_spectrum()
        assert grand.power.tolist() == pytest.approx([1.0, 2.0, 3.0, 4.0])
        assert grand.uncertainty.tolist() == pytest.approx([1.0] * 4)

    def test_empty(self) -> None:
        with pytest.raises(EmptyCollectionError):
            Spectrum().grand_spectrum()

    def test_requires_axion_power(self) -> None:
        run = Spectrum([
            _axion([1.0], [1.0], 0.0, 1.0),
            _axion([1.0], [1.0], 0.0, 1.0, units=Units.EXCESS_POWER),
        ])
        with pytest.raises(InvalidStateError):
            run.grand_spectrum()


class TestLimits:
    """Exclusion limits and coupling predictions."""

    def test_limit_per_bin(self) -> None:
        member = _axion([4.0, -1.0, 0.5], [0.5, 0.5, 0.5], 4000.0, 4003.0)
        limits = Spectrum([member]).limits(confidence=2.0, rebin_window=1)

        g = physics.ksvz_axion_coupling(np.array([4000.5, 4001.5, 4002.5]))
        expected = np.sqrt(np.array([4.0, 0.0, 0.5]) + 2.0 * 0.5) * g
        assert limits.units is Units.EXCL_LIMIT_90
        assert np.allclose(limits.power, expected)
        assert np.allclose(limits.uncertainty, g)

    def test_limit_rebinned(self) -> None:
        n = 1200
        member = _axion(np.ones(n), np.full(n, 0.1), 4000.0, 4012.0)
        run = Spectrum([member])

        limits = run.limits()

        assert limits.size() == 2
        assert limits.units is Units.EXCL_LIMIT_90
        assert np.all(limits.power > 0)
        assert limits.power[1] > limits.power[0]
        assert run.at(0).units is Units.AXION_POWER

    def test_g_squared_prediction(self) -> None:
        member = _axion([2.0, 3.0], [1.0, 1.0], 5000.0, 5002.0)
        prediction = Spectrum([member]).g_squared_prediction()
        g2 = physics.estimate_g_squared(np.array([5000.5, 5001.5]))
        assert prediction.units is Units.AXION_POWER
        assert np.allclose(prediction.power, np.array([2.0, 3.0]) * g2)
        assert np.allclose(prediction.uncertainty, g2)

    def test_limits_empty(self) -> None:
        with pytest.raises(EmptyCollectionError):
            Spectrum().limits()
