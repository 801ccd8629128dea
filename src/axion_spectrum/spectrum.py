"""The single measured power spectrum and its unit conversions.

This module provides :class:`SingleSpectrum`, which holds the power and
uncertainty of one cavity measurement together with its instrument
metadata.  A spectrum behaves like a vector: it supports elementwise
arithmetic with other spectra and sequences of equal length, scalar
arithmetic, and a handful of summary statistics.

Unit conversions (:meth:`SingleSpectrum.dbm_to_watts`,
:meth:`SingleSpectrum.watts_to_excess_power`, ...) and binning operations
mutate the spectrum in place.  Every guarded operation validates its
precondition before touching any data.
"""

import math
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from axion_spectrum import physics
from axion_spectrum.errors import OutOfRangeError, SizeMismatchError
from axion_spectrum.models import SpectrumMetadata
from axion_spectrum.parser import parse_raw_spectrum
from axion_spectrum.units import Units, transition

#: Default number of raw points per initial bin.
DEFAULT_BIN_POINTS: int = 32

Operand = Union["SingleSpectrum", Sequence[float], np.ndarray]


def _readonly(values: np.ndarray) -> np.ndarray:
    view = values.view()
    view.flags.writeable = False
    return view


class SingleSpectrum:
    """A power spectrum from one cavity configuration.

    Build one from the raw contents of a data file::

        >>> spec = SingleSpectrum(raw_text)     # parsed and now in Watts
        >>> spec.initial_bin(32)
        >>> spec.watts_to_excess_power()
        >>> spec.ksvz_weight()

    or as an all-zero blank with :meth:`blank`.

    Attributes:
        metadata: Instrument parameters read from the file header.
    """

    def __init__(self, raw_data: str) -> None:
        """Parse *raw_data* and convert the samples from dBm to Watts.

        Args:
            raw_data: Entire contents of a raw data file.

        Raises:
            MalformedHeaderError: If the header is incomplete or not
                numeric.
            MalformedSampleError: If a sample line is not numeric.
        """
        header, samples = parse_raw_spectrum(raw_data)
        self.metadata = SpectrumMetadata.from_header(header)
        self._power: np.ndarray = samples
        self._uncertainty: np.ndarray = np.empty(0, dtype=np.float64)
        self._units = Units.DBM
        self._rebin_size = DEFAULT_BIN_POINTS

        self.dbm_to_watts()

    @classmethod
    def blank(
        cls,
        size: int,
        min_freq: Optional[float] = None,
        max_freq: Optional[float] = None,
        units: Units = Units.DBM,
    ) -> "SingleSpectrum":
        """Create a spectrum whose power and uncertainty are all zero.

        Args:
            size: Number of bins.
            min_freq: Lower edge of the spectrum in MHz.
            max_freq: Upper edge of the spectrum in MHz.  Without both
                edges the centre frequency and span stay at zero.
            units: Initial unit tag.

        Returns:
            A new blank :class:`SingleSpectrum`.
        """
        spec = cls.__new__(cls)
        spec.metadata = SpectrumMetadata()
        if min_freq is not None and max_freq is not None:
            spec.metadata.center_frequency = (max_freq - min_freq) / 2.0 + min_freq
            spec.metadata.frequency_span = max_freq - min_freq
        spec._power = np.zeros(size, dtype=np.float64)
        spec._uncertainty = np.zeros(size, dtype=np.float64)
        spec._units = units
        spec._rebin_size = DEFAULT_BIN_POINTS
        return spec

    def copy(self) -> "SingleSpectrum":
        """Return an independent deep copy."""
        spec = SingleSpectrum.__new__(SingleSpectrum)
        spec.metadata = self.metadata.copy()
        spec._power = self._power.copy()
        spec._uncertainty = self._uncertainty.copy()
        spec._units = self._units
        spec._rebin_size = self._rebin_size
        return spec

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    @property
    def power(self) -> np.ndarray:
        """Read-only view of the power samples."""
        return _readonly(self._power)

    @property
    def uncertainty(self) -> np.ndarray:
        """Read-only view of the uncertainties (empty before binning)."""
        return _readonly(self._uncertainty)

    @property
    def units(self) -> Units:
        return self._units

    @property
    def rebin_size(self) -> int:
        """``bin_points`` of the most recent :meth:`initial_bin`."""
        return self._rebin_size

    @property
    def center_frequency(self) -> float:
        return self.metadata.center_frequency

    @property
    def frequency_span(self) -> float:
        return self.metadata.frequency_span

    def set_power(self, power: Operand, uncertainty: Optional[Operand] = None) -> None:
        """Replace the power (and optionally the uncertainty) samples.

        The number of bins is an invariant of the spectrum here; use the
        binning methods to change it.

        Raises:
            SizeMismatchError: If the new arrays do not match the
                current number of bins.
        """
        new_power = np.array(_values(power), dtype=np.float64)
        if new_power.shape != self._power.shape:
            raise SizeMismatchError(self.size(), new_power.size, "Spectrum and power")
        new_uncertainty = None
        if uncertainty is not None:
            new_uncertainty = np.array(_values(uncertainty), dtype=np.float64)
            if new_uncertainty.shape != self._power.shape:
                raise SizeMismatchError(
                    self.size(), new_uncertainty.size, "Spectrum and uncertainty"
                )
        self._power = new_power
        if new_uncertainty is not None:
            self._uncertainty = new_uncertainty

    def size(self) -> int:
        """Number of power bins (uncertainties are not counted)."""
        return int(self._power.size)

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return (
            f"SingleSpectrum(size={self.size()}, units={self._units.value}, "
            f"center_frequency={self.center_frequency}, "
            f"frequency_span={self.frequency_span})"
        )

    # ------------------------------------------------------------------
    # Unit conversions
    # ------------------------------------------------------------------

    def dbm_to_watts(self) -> None:
        """Convert the power samples from dBm to Watts.

        Raises:
            InvalidStateError: If the spectrum is not in dBm.
        """
        self._units = transition(self._units, "dbm_to_watts")
        self._power = physics.dbm_to_watts(self._power)

    def watts_to_excess_power(self) -> None:
        """Convert from Watts to power above the thermal noise floor.

        The spectrum is rescaled so its mean equals the expected noise
        power per bin, then that noise power is subtracted.  The
        uncertainty becomes uniform:
        ``noise_power / sqrt(averages * rebin_size)``.
        A spectrum without bins only changes its unit tag.

        Raises:
            InvalidStateError: If the spectrum is not in Watts.
        """
        new_units = transition(self._units, "watts_to_excess_power")
        if self.size() == 0:
            self._uncertainty = np.empty(0, dtype=np.float64)
            self._units = new_units
            return

        noise_power = physics.power_per_bin(
            self.metadata.noise_temperature, self.bin_width()
        )
        mean_val = self.mean()
        self._power = self._power * (noise_power / mean_val) - noise_power
        self._populate_uncertainties(noise_power)
        self._units = new_units

    def _populate_uncertainties(self, noise_power: float) -> None:
        uniform = noise_power / math.sqrt(
            self.metadata.number_of_averages * self._rebin_size
        )
        self._uncertainty = np.full(self.size(), uniform, dtype=np.float64)

    def lorentzian_weight(self) -> None:
        """Divide every bin by the cavity's Lorentzian response at that bin.

        Bins far from the centre frequency are scaled up to compensate
        for the reduced cavity response.  The unit tag is unchanged.

        Raises:
            InvalidStateError: If the spectrum is not in excess power.
        """
        new_units = transition(self._units, "lorentzian_weight")
        weights = physics.lorentzian(
            self.center_frequency,
            self.mid_frequencies(),
            self.metadata.quality_factor,
        )
        self._power = self._power / weights
        self._uncertainty = self._uncertainty / weights
        self._units = new_units

    def ksvz_weight(self) -> None:
        """Express every bin as a fraction of the expected KSVZ axion power.

        Raises:
            InvalidStateError: If the spectrum is not in excess power.
        """
        new_units = transition(self._units, "ksvz_weight")
        expected = physics.max_ksvz_power(
            self.metadata.effective_volume,
            self.metadata.b_field,
            self.mid_frequencies(),
            self.metadata.quality_factor,
        )
        self._power = self._power / expected
        self._uncertainty = self._uncertainty / expected
        self._units = new_units

    # ------------------------------------------------------------------
    # Binning
    # ------------------------------------------------------------------

    def initial_bin(self, bin_points: int = DEFAULT_BIN_POINTS) -> None:
        """Average raw samples into half-overlapping bins.

        The samples are cut into consecutive windows of ``bin_points // 2``
        points.  Each output bin is the mean of one window together with
        the window before it, so the first window only ever contributes
        as a predecessor.  A trailing partial window is dropped.

        The uncertainty is set to a copy of the binned power until
        :meth:`watts_to_excess_power` computes the real values.

        Args:
            bin_points: Raw points covered by one output bin.

        Raises:
            InvalidStateError: If the spectrum is not in Watts.
            ValueError: If ``bin_points < 2``.
        """
        transition(self._units, "initial_bin")
        window = bin_points // 2
        if window < 1:
            raise ValueError(f"bin_points must be at least 2, got {bin_points}")

        n_windows = self.size() // window
        sums = self._power[: n_windows * window].reshape(n_windows, window).sum(axis=1)
        binned = (sums[1:] + sums[:-1]) / (window * 2)

        self._power = binned
        self._uncertainty = binned.copy()
        self._rebin_size = bin_points

    def rebin(self, points_per_bin: int) -> None:
        """Conservatively downsample, keeping the largest value per window.

        Power and uncertainty are grouped into windows of
        *points_per_bin* bins and each window reports its maximum.  The
        running maximum is seeded with the global minimum of each array.
        A trailing partial window is dropped.

        Raises:
            ValueError: If ``points_per_bin < 1``.
            SizeMismatchError: If power and uncertainty differ in length.
        """
        if points_per_bin < 1:
            raise ValueError(f"points_per_bin must be positive, got {points_per_bin}")
        if self._uncertainty.size != self._power.size:
            raise SizeMismatchError(
                self._power.size, self._uncertainty.size, "Power and uncertainty"
            )
        if self.size() == 0:
            return

        min_power = self._power.min()
        min_uncertainty = self._uncertainty.min()
        n_bins = self.size() // points_per_bin
        usable = n_bins * points_per_bin

        power = self._power[:usable].reshape(n_bins, points_per_bin).max(axis=1)
        uncertainty = self._uncertainty[:usable].reshape(n_bins, points_per_bin).max(axis=1)

        self._power = np.maximum(power, min_power)
        self._uncertainty = np.maximum(uncertainty, min_uncertainty)

    def chop_bins(self, start_chop: int, end_chop: int, truncate: bool = True) -> None:
        """Remove bins from the head and tail of the spectrum.

        The span shrinks by the retained fraction of the original size.
        With ``truncate=True`` that fraction is an integer quotient, so
        any chop collapses the span to zero.

        Args:
            start_chop: Number of leading bins to remove.
            end_chop: Number of trailing bins to remove.
            truncate: Use the integer-truncated retained fraction.

        Raises:
            OutOfRangeError: If more bins are chopped than exist.
        """
        size = self.size()
        if start_chop < 0 or end_chop < 0 or start_chop + end_chop > size:
            raise OutOfRangeError(
                f"Cannot chop {start_chop} + {end_chop} bins from a spectrum "
                f"of {size} bins"
            )
        retained = size - start_chop - end_chop
        if size:
            if truncate:
                self.metadata.frequency_span *= retained // size
            else:
                self.metadata.frequency_span *= retained / size

        stop = size - end_chop
        self._power = self._power[start_chop:stop].copy()
        if self._uncertainty.size:
            self._uncertainty = self._uncertainty[start_chop:stop].copy()

    # ------------------------------------------------------------------
    # Frequency axis
    # ------------------------------------------------------------------

    def min_freq(self) -> float:
        """Lower edge of the spectrum in MHz."""
        return self.center_frequency - 0.5 * self.frequency_span

    def max_freq(self) -> float:
        """Upper edge of the spectrum in MHz."""
        return self.center_frequency + 0.5 * self.frequency_span

    def bin_width(self) -> float:
        """Width of a single bin in MHz, zero for a spectrum without bins."""
        if self.size() == 0:
            return 0.0
        return self.frequency_span / float(self.size())

    def bin_start_freq(self, idx: int) -> float:
        """Frequency of the left edge of bin *idx*."""
        return self.min_freq() + idx * self.bin_width()

    def bin_mid_freq(self, idx: int) -> float:
        """Frequency of the centre of bin *idx*."""
        return self.bin_start_freq(idx) + 0.5 * self.bin_width()

    def frequencies(self) -> np.ndarray:
        """Left edge frequency of every bin."""
        n = self.size()
        if n == 0:
            return np.empty(0, dtype=np.float64)
        return self.min_freq() + np.arange(n, dtype=np.float64) * self.frequency_span / n

    def mid_frequencies(self) -> np.ndarray:
        """Centre frequency of every bin."""
        if self.size() == 0:
            return np.empty(0, dtype=np.float64)
        return self.frequencies() + 0.5 * self.bin_width()

    def covers(self, frequency: float) -> bool:
        """Whether *frequency* lies within ``[min_freq, max_freq]``."""
        return self.min_freq() <= frequency <= self.max_freq()

    def bin_at_frequency(self, frequency: float) -> int:
        """Index of the bin that contains *frequency*.

        Raises:
            OutOfRangeError: If *frequency* lies outside
                ``[min_freq(), max_freq()]``.
        """
        if not self.covers(frequency):
            raise OutOfRangeError(
                f"Requested frequency of {frequency} is outside of spectrum "
                f"range: {self.min_freq()} to {self.max_freq()}"
            )
        return int(self.bins_at_frequencies(np.array([frequency]))[0])

    def bins_at_frequencies(self, frequencies: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`bin_at_frequency` without the range check.

        Offsets are taken from the centre frequency so that the centre
        maps exactly to ``size() // 2``; results are clamped to valid
        indices.
        """
        n = self.size()
        offsets = (np.asarray(frequencies, dtype=np.float64) - self.center_frequency)
        bins = np.floor(offsets / self.frequency_span * n + n / 2.0)
        return np.clip(bins, 0, max(n - 1, 0)).astype(np.intp)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def norm(self) -> float:
        """L2 norm of the power samples."""
        return float(np.sqrt(np.sum(self._power ** 2)))

    def mean(self) -> float:
        """Arithmetic mean of the power samples."""
        return float(np.mean(self._power))

    def std_dev(self) -> float:
        """Sample standard deviation (Bessel corrected) of the power."""
        return float(np.std(self._power, ddof=1))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def frequency_power_rows(self) -> List[Tuple[float, float]]:
        """``(frequency, power)`` pairs using each bin's left edge."""
        return list(zip(self.frequencies().tolist(), self._power.tolist()))

    def power_uncertainty_rows(self) -> List[Tuple[float, float]]:
        """``(power, uncertainty)`` pairs, one per bin.

        Raises:
            SizeMismatchError: If the uncertainty has not been populated.
        """
        if self._uncertainty.size != self._power.size:
            raise SizeMismatchError(
                self._power.size, self._uncertainty.size, "Power and uncertainty"
            )
        return list(zip(self._power.tolist(), self._uncertainty.tolist()))

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SingleSpectrum):
            return NotImplemented
        return bool(np.array_equal(self._power, other._power))

    __hash__ = None  # type: ignore[assignment]

    def _elementwise(self, other: Operand, op) -> "SingleSpectrum":
        values = np.asarray(_values(other), dtype=np.float64)
        if values.shape != self._power.shape:
            what = "Spectra" if isinstance(other, SingleSpectrum) else "Spectrum and vector"
            raise SizeMismatchError(self.size(), values.size, what)
        result = self.copy()
        result._power = op(self._power, values)
        return result

    def __add__(self, other):
        if _is_scalar(other):
            result = self.copy()
            result._power = self._power + other
            return result
        return self._elementwise(other, np.add)

    def __sub__(self, other):
        if _is_scalar(other):
            result = self.copy()
            result._power = self._power - other
            return result
        return self._elementwise(other, np.subtract)

    def __mul__(self, other):
        if _is_scalar(other):
            result = self.copy()
            result._power = self._power * other
            result._uncertainty = self._uncertainty * other
            return result
        return self._elementwise(other, np.multiply)

    def __rmul__(self, other):
        if _is_scalar(other):
            return self * other
        return NotImplemented

    def __radd__(self, other):
        if _is_scalar(other):
            return self + other
        return NotImplemented

    def __iadd__(self, other):
        result = self + other
        self._power = result._power
        return self

    def __isub__(self, other):
        result = self - other
        self._power = result._power
        return self

    def __imul__(self, other):
        result = self * other
        self._power = result._power
        self._uncertainty = result._uncertainty
        return self


def _is_scalar(value: object) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating))


def _values(operand: Operand) -> np.ndarray:
    if isinstance(operand, SingleSpectrum):
        return operand._power
    return np.asarray(operand, dtype=np.float64)
