"""End-to-end analysis of one data run.

:func:`run_analysis` takes a directory of raw spectrum files through the
whole chain: load, convert to Watts, optional background subtraction,
initial binning, excess power, axion power weighting and finally the
grand spectrum, exclusion limits and coupling-squared prediction.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from axion_spectrum.analysis import Spectrum
from axion_spectrum.config import AnalysisConfig
from axion_spectrum.filters import unsharp_mask
from axion_spectrum.io import FlatFileReader
from axion_spectrum.progress import ProgressCallback, ProgressReporter
from axion_spectrum.spectrum import SingleSpectrum


@dataclass
class AnalysisResult:
    """Products of :func:`run_analysis`.

    Attributes:
        spectra: The member spectra, in units of axion power.
        grand: The combined grand spectrum.
        limits: Exclusion limit curve on the coupling.
        g_squared: Grand spectrum scaled by the KSVZ coupling squared.
    """

    spectra: Spectrum
    grand: SingleSpectrum
    limits: SingleSpectrum
    g_squared: SingleSpectrum


def prepare_spectrum(raw_data: str, config: AnalysisConfig) -> SingleSpectrum:
    """Build one spectrum and take it from dBm to binned Watts."""
    spec = SingleSpectrum(raw_data)
    if config.unsharp_radius is not None:
        unsharp_mask(spec, config.unsharp_radius, config.unsharp_sigma)
    spec.initial_bin(config.initial_bin_points)
    if config.chop_start or config.chop_end:
        spec.chop_bins(config.chop_start, config.chop_end, truncate=config.chop_truncate_span)
    return spec


def run_analysis(
    directory: Union[str, Path],
    config: Optional[AnalysisConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> AnalysisResult:
    """Analyse every raw spectrum file in *directory*.

    Args:
        directory: Directory holding the raw data files.
        config: Analysis parameters, defaults if ``None``.
        progress_callback: Optional ``(message, fraction)`` callable.

    Returns:
        An :class:`AnalysisResult`.

    Raises:
        FileNotFoundError: If *directory* does not exist.
        EmptyCollectionError: If no file matches the sift term.
        MalformedHeaderError: If a file header is incomplete.
        MalformedSampleError: If a file holds a non-numeric sample.
    """
    config = config or AnalysisConfig()
    reporter = ProgressReporter(progress_callback)

    reader = FlatFileReader(
        directory,
        sift_term=config.sift_term,
        max_workers=config.max_workers,
        progress_callback=progress_callback,
    )

    spectra = Spectrum()
    for done, raw_data in enumerate(reader, start=1):
        spectra += prepare_spectrum(raw_data, config)
        reporter.advance(done, reader.count(), "Preparing spectra")

    reporter.update("Converting to excess power", 0.0)
    spectra.watts_to_excess_power()
    if config.lorentzian_weight:
        spectra.lorentzian_weight()
    spectra.ksvz_weight()

    reporter.update("Building grand spectrum", 0.0)
    grand = spectra.grand_spectrum()
    reporter.update("Deriving exclusion limits", 0.5)
    limits = spectra.limits(config.limit_confidence, config.limit_rebin_window)
    g_squared = spectra.g_squared_prediction()
    reporter.update("Analysis complete", 1.0)

    return AnalysisResult(spectra=spectra, grand=grand, limits=limits, g_squared=g_squared)
