"""Combination of many single spectra into grand spectra and limits.

This module provides :class:`Spectrum`, an ordered collection of
:class:`~axion_spectrum.spectrum.SingleSpectrum` that applies unit
conversions to all members at once and derives:

* the grand spectrum, an inverse-variance weighted combination of every
  member over the union of their frequency ranges,
* exclusion limits on the axion-photon coupling,
* the expected coupling-squared signal ("G squared prediction").

Derived products never modify the collection or its members.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List

import numpy as np

from axion_spectrum import physics
from axion_spectrum.errors import EmptyCollectionError, InvalidStateError, OutOfRangeError
from axion_spectrum.spectrum import DEFAULT_BIN_POINTS, SingleSpectrum
from axion_spectrum.units import Units

LIMIT_CONFIDENCE_MULTIPLIER: float = 1.282
"""Multiple of the uncertainty added to the power when deriving limits.

1.282 is the one-sided 90% point of a standard normal distribution,
matching the ``ExclLimit90`` tag of the result.  Older analyses used 2.0.
"""

LIMIT_REBIN_WINDOW: int = 600
"""Bins merged (conservatively) into one point of the limit curve."""


@dataclass(frozen=True)
class Extent:
    """Frequency coverage and bin count of one spectrum."""

    min_freq: float
    max_freq: float
    size: int


def spectrum_extent(spec: SingleSpectrum) -> Extent:
    """Summarise the coverage of *spec*."""
    return Extent(spec.min_freq(), spec.max_freq(), spec.size())


def reduce_extents(extents: Iterable[Extent]) -> Extent:
    """Merge per-spectrum extents into the coverage of their union.

    The bin count of the result is the *sum* of all member bin counts.

    Raises:
        EmptyCollectionError: If *extents* is empty.
    """
    extents = list(extents)
    if not extents:
        raise EmptyCollectionError("Cannot combine an empty set of spectra")
    return Extent(
        min_freq=min(e.min_freq for e in extents),
        max_freq=max(e.max_freq for e in extents),
        size=sum(e.size for e in extents),
    )


def combine_inverse_variance(p_a, d_a, p_b, d_b):
    """Inverse-variance weighted mean of two estimates.

    Returns:
        ``(power, uncertainty)`` where
        ``power = (p_a/d_a^2 + p_b/d_b^2) / (1/d_a^2 + 1/d_b^2)`` and
        ``uncertainty = sqrt(1 / (1/d_a^2 + 1/d_b^2))``.
    """
    tau_a = 1.0 / d_a ** 2
    tau_b = 1.0 / d_b ** 2
    tau = tau_a + tau_b
    return (tau_a * p_a + tau_b * p_b) / tau, np.sqrt(1.0 / tau)


class Spectrum:
    """Ordered collection of the single spectra from one data run.

    Example:
        >>> run = Spectrum()
        >>> for raw in reader:
        ...     run += SingleSpectrum(raw)
        >>> run.initial_bin()
        >>> run.watts_to_excess_power()
        >>> run.ksvz_weight()
        >>> limits = run.limits()
    """

    def __init__(self, spectra: Iterable[SingleSpectrum] = ()) -> None:
        self._spectra: List[SingleSpectrum] = list(spectra)

    def append(self, spec: SingleSpectrum) -> None:
        """Add *spec* at the end of the collection."""
        self._spectra.append(spec)

    def remove(self, spec: SingleSpectrum) -> None:
        """Remove the first member whose power equals that of *spec*.

        Does nothing when no member matches.
        """
        for i, member in enumerate(self._spectra):
            if member == spec:
                del self._spectra[i]
                return

    def __iadd__(self, spec: SingleSpectrum) -> "Spectrum":
        self.append(spec)
        return self

    def __isub__(self, spec: SingleSpectrum) -> "Spectrum":
        self.remove(spec)
        return self

    def at(self, idx: int) -> SingleSpectrum:
        """Return the member at position *idx*.

        Raises:
            OutOfRangeError: If *idx* is not a valid position.
        """
        if idx < 0 or idx >= len(self._spectra):
            raise OutOfRangeError(
                f"Requested index {idx} but the collection holds "
                f"{len(self._spectra)} spectra"
            )
        return self._spectra[idx]

    def size(self) -> int:
        return len(self._spectra)

    def __len__(self) -> int:
        return len(self._spectra)

    def __iter__(self) -> Iterator[SingleSpectrum]:
        return iter(self._spectra)

    def clear(self) -> None:
        """Remove every member."""
        self._spectra.clear()

    # ------------------------------------------------------------------
    # Batch conversions
    # ------------------------------------------------------------------

    def dbm_to_watts(self) -> None:
        for spec in self._spectra:
            spec.dbm_to_watts()

    def initial_bin(self, bin_points: int = DEFAULT_BIN_POINTS) -> None:
        for spec in self._spectra:
            spec.initial_bin(bin_points)

    def watts_to_excess_power(self) -> None:
        for spec in self._spectra:
            spec.watts_to_excess_power()

    def lorentzian_weight(self) -> None:
        for spec in self._spectra:
            spec.lorentzian_weight()

    def ksvz_weight(self) -> None:
        for spec in self._spectra:
            spec.ksvz_weight()

    # ------------------------------------------------------------------
    # Derived products
    # ------------------------------------------------------------------

    def _blank_grand_spectrum(self) -> SingleSpectrum:
        extent = reduce_extents(spectrum_extent(spec) for spec in self._spectra)
        return SingleSpectrum.blank(
            extent.size, extent.min_freq, extent.max_freq, units=Units.AXION_POWER
        )

    def grand_spectrum(self) -> SingleSpectrum:
        """Combine every member into one spectrum.

        The result spans the union of all member ranges with as many
        bins as all members together.  Each output bin takes the value
        of every member covering its centre frequency: the first such
        member is copied, later ones are folded in by inverse-variance
        weighting.  A bin whose power is exactly zero counts as not yet
        populated.  Members without bins add nothing.

        Returns:
            A new spectrum in units of axion power.

        Raises:
            EmptyCollectionError: If the collection is empty.
            InvalidStateError: If a member is not in axion power.
        """
        if not self._spectra:
            raise EmptyCollectionError("Cannot build a grand spectrum from an empty collection")
        for spec in self._spectra:
            if spec.units is not Units.AXION_POWER:
                raise InvalidStateError("grand_spectrum", Units.AXION_POWER, spec.units)

        grand = self._blank_grand_spectrum()
        mids = grand.mid_frequencies()
        power = np.zeros(grand.size())
        uncertainty = np.zeros(grand.size())

        for spec in self._spectra:
            if spec.size() == 0:
                continue
            covered = np.flatnonzero((mids >= spec.min_freq()) & (mids <= spec.max_freq()))
            if covered.size == 0:
                continue
            src = spec.bins_at_frequencies(mids[covered])
            p_b = spec.power[src]
            d_b = spec.uncertainty[src]

            unset = power[covered] == 0.0
            fresh = covered[unset]
            power[fresh] = p_b[unset]
            uncertainty[fresh] = d_b[unset]

            seen = covered[~unset]
            power[seen], uncertainty[seen] = combine_inverse_variance(
                power[seen], uncertainty[seen], p_b[~unset], d_b[~unset]
            )

        grand.set_power(power, uncertainty)
        return grand

    def limits(
        self,
        confidence: float = LIMIT_CONFIDENCE_MULTIPLIER,
        rebin_window: int = LIMIT_REBIN_WINDOW,
    ) -> SingleSpectrum:
        """Derive an exclusion limit on the axion-photon coupling.

        For each bin of the grand spectrum the limit is
        ``sqrt(max(P, 0) + confidence * dP) * g_KSVZ(f)``; the
        uncertainty channel is replaced by ``g_KSVZ(f)``.  The curve is
        then conservatively rebinned by *rebin_window*.

        Args:
            confidence: Multiple of the uncertainty added to the power.
            rebin_window: Bins per point of the returned curve.

        Returns:
            A new spectrum tagged :attr:`Units.EXCL_LIMIT_90`.
        """
        grand = self.grand_spectrum()
        coupling = physics.ksvz_axion_coupling(grand.mid_frequencies())
        bound = np.maximum(grand.power, 0.0) + confidence * grand.uncertainty
        grand.set_power(np.sqrt(bound) * coupling, coupling)
        grand.rebin(rebin_window)
        return _retag(grand, Units.EXCL_LIMIT_90)

    def g_squared_prediction(self) -> SingleSpectrum:
        """Grand spectrum scaled by the KSVZ coupling squared at each bin."""
        grand = self.grand_spectrum()
        g_squared = physics.estimate_g_squared(grand.mid_frequencies())
        grand.set_power(grand.power * g_squared, grand.uncertainty * g_squared)
        return grand


def _retag(spec: SingleSpectrum, units: Units) -> SingleSpectrum:
    result = SingleSpectrum.blank(spec.size(), units=units)
    result.metadata = spec.metadata.copy()
    result.set_power(spec.power, spec.uncertainty)
    return result
