"""Background subtraction and smoothing filters.

Array-level functions (:func:`gaussian_blur`, :func:`unsharp`,
:func:`sinc`) return new arrays.  The spectrum-level wrappers
(:func:`gaussian_filter`, :func:`unsharp_mask`, :func:`sinc_filter`)
replace the power of the given spectrum in place, leaving its unit tag
and uncertainty untouched.

:func:`auto_optimize` searches the unsharp-mask parameter grid for the
settings whose output looks most like white noise.
"""

import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np

from axion_spectrum.convolution import linear_convolve
from axion_spectrum.kernels import gaussian_kernel, sinc_kernel
from axion_spectrum.progress import ProgressCallback, ProgressReporter
from axion_spectrum.spectrum import SingleSpectrum

#: Lower end of the sigma axis searched by :func:`auto_optimize`.
MIN_SIGMA: float = 0.01

#: Step between sigma values searched by :func:`auto_optimize`.
SIGMA_STEP: float = 1.0

# (score, radius, sigma)
GridPoint = Tuple[float, int, float]


def renormalize(filtered: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Rescale *filtered* to have the same L2 norm as *reference*.

    Convolving with a normalised kernel does not preserve the norm of
    the signal.  A filtered signal with zero norm is returned unchanged.
    """
    filtered_norm = np.linalg.norm(filtered)
    if filtered_norm == 0.0:
        return filtered
    return filtered * (np.linalg.norm(reference) / filtered_norm)


def gaussian_blur(data, radius: int, sigma: Optional[float] = None) -> np.ndarray:
    """Low-pass *data* with a Gaussian kernel."""
    return linear_convolve(data, gaussian_kernel(radius, sigma))


def unsharp(data, radius: int, sigma: Optional[float] = None) -> np.ndarray:
    """High-pass *data* by subtracting its renormalised Gaussian blur."""
    data = np.asarray(data, dtype=np.float64)
    blurred = renormalize(gaussian_blur(data, radius, sigma), data)
    return data - blurred


def sinc(data, radius: int, cutoff_frequency: float, sample_frequency: float) -> np.ndarray:
    """Low-pass *data* with a sinc kernel and restore its L2 norm."""
    data = np.asarray(data, dtype=np.float64)
    kernel = sinc_kernel(radius, cutoff_frequency, sample_frequency)
    return renormalize(linear_convolve(data, kernel), data)


def gaussian_filter(spec: SingleSpectrum, radius: int, sigma: Optional[float] = None) -> None:
    """Replace the power of *spec* with its Gaussian blur."""
    spec.set_power(gaussian_blur(spec.power, radius, sigma))


def unsharp_mask(spec: SingleSpectrum, radius: int, sigma: Optional[float] = None) -> None:
    """Subtract the slowly varying background from *spec*.

    Applied to spectra in Watts before the initial binning.
    """
    spec.set_power(unsharp(spec.power, radius, sigma))


def sinc_filter(
    spec: SingleSpectrum,
    radius: int,
    cutoff_frequency: float,
    sample_frequency: float,
) -> None:
    """Replace the power of *spec* with its sinc low-pass."""
    spec.set_power(sinc(spec.power, radius, cutoff_frequency, sample_frequency))


def white_noise_score(result: np.ndarray, target: float) -> float:
    """Distance of ``mean / stddev`` of *result* from *target*.

    A result with no spread scores ``inf``.
    """
    std = float(np.std(result, ddof=1)) if result.size > 1 else 0.0
    if std == 0.0 or not math.isfinite(std):
        return math.inf
    return abs(target - float(np.mean(result)) / std)


def sigma_grid(sample_frequency: float) -> np.ndarray:
    """Sigma values searched by :func:`auto_optimize`."""
    return np.arange(MIN_SIGMA, sample_frequency / 2.0, SIGMA_STEP)


def _best_for_radius(data: np.ndarray, radius: int, sigmas: np.ndarray, target: float) -> GridPoint:
    best: GridPoint = (math.inf, radius, float(sigmas[0]))
    for sigma in sigmas:
        score = white_noise_score(unsharp(data, radius, float(sigma)), target)
        if score < best[0]:
            best = (score, radius, float(sigma))
    return best


def reduce_grid(points: List[GridPoint]) -> GridPoint:
    """Pick the lowest-scoring grid point.

    Ties are broken by the smaller radius, then the smaller sigma, so
    the answer does not depend on the order the points arrive in.
    """
    if not points:
        raise ValueError("No grid points to reduce")
    return min(points)


def auto_optimize(
    spec: SingleSpectrum,
    max_radius: int,
    sample_frequency: float,
    max_workers: Optional[int] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> Tuple[int, float]:
    """Find the unsharp-mask parameters that leave the flattest residual.

    Every ``radius`` in ``[1, max_radius)`` is combined with every
    ``sigma`` in ``[0.01, sample_frequency / 2)`` (unit steps).  Each
    combination is scored by ``|1/sqrt(N) - mean/stddev|`` of the
    filtered power, the ratio expected for pure white noise.  Radii are
    evaluated in parallel; the spectrum itself is not modified.

    Args:
        spec: Spectrum whose power is filtered.
        max_radius: Exclusive upper bound of the radius axis.
        sample_frequency: Sets the upper bound of the sigma axis.
        max_workers: Thread pool size, executor default if ``None``.
        progress_callback: Optional ``(message, fraction)`` callable.

    Returns:
        ``(radius, sigma)`` with the lowest score.

    Raises:
        ValueError: If the parameter grid is empty.
    """
    radii = list(range(1, max_radius))
    sigmas = sigma_grid(sample_frequency)
    if not radii or sigmas.size == 0:
        raise ValueError(
            f"Empty search grid for max_radius={max_radius}, "
            f"sample_frequency={sample_frequency}"
        )

    data = np.array(spec.power, dtype=np.float64)
    target = 1.0 / math.sqrt(data.size)
    reporter = ProgressReporter(progress_callback)

    row_bests: List[GridPoint] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_best_for_radius, data, radius, sigmas, target)
            for radius in radii
        ]
        for done, future in enumerate(futures, start=1):
            row_bests.append(future.result())
            reporter.advance(done, len(futures), "Searching filter parameters")

    _, radius, sigma = reduce_grid(row_bests)
    return radius, sigma
