"""Finite impulse response kernels for the spectrum filters.

Every kernel has odd length ``2 * radius + 1`` and is L2-normalised
before it is returned.
"""

import math
from typing import Optional

import numpy as np


def gaussian(x, sigma: float):
    """Zero-mean Gaussian with standard deviation *sigma*."""
    return 1.0 / (math.sqrt(math.pi / 2.0) * sigma) * np.exp(-0.5 * (x / sigma) ** 2)


def normalize(kernel) -> np.ndarray:
    """Scale *kernel* to unit L2 norm.

    Raises:
        ValueError: If the kernel has zero norm.
    """
    kernel = np.asarray(kernel, dtype=np.float64)
    norm_factor = np.sqrt(np.sum(kernel ** 2))
    if norm_factor == 0.0:
        raise ValueError("Cannot normalise a kernel with zero norm")
    return kernel / norm_factor


def _offsets(radius: int) -> np.ndarray:
    if radius < 0:
        raise ValueError(f"Kernel radius must be non-negative, got {radius}")
    return np.arange(-radius, radius + 1, dtype=np.float64)


def gaussian_kernel(radius: int, sigma: Optional[float] = None) -> np.ndarray:
    """Normalised Gaussian kernel of the given radius.

    Args:
        radius: Half width of the kernel in samples.
        sigma: Standard deviation in samples, ``radius / 2`` by default.

    Returns:
        Array of length ``2 * radius + 1``.  A radius of zero gives the
        identity kernel ``[1.0]``.

    Raises:
        ValueError: If *radius* is negative or *sigma* is not positive.
    """
    x = _offsets(radius)
    if radius == 0 and sigma is None:
        return np.ones(1)
    if sigma is None:
        sigma = radius / 2.0
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    return normalize(gaussian(x, sigma))


def unsharp_kernel(radius: int, sigma: Optional[float] = None) -> np.ndarray:
    """High-pass kernel: a unit impulse minus the Gaussian kernel.

    Convolving with this kernel subtracts the blurred signal from the
    original in a single pass, without renormalising the blur.  It is
    offered for callers that build their own filters;
    :func:`~axion_spectrum.filters.unsharp` renormalises the blur first
    and does not use it.
    """
    kernel = -gaussian_kernel(radius, sigma)
    kernel[radius] += 1.0
    return normalize(kernel)


def sinc_kernel(radius: int, cutoff_frequency: float, sample_frequency: float) -> np.ndarray:
    """Normalised windowless sinc low-pass kernel.

    ``k(x) = sin(2 pi f_t x) / (pi x)`` with
    ``f_t = cutoff_frequency / sample_frequency``; the removable
    singularity at ``x = 0`` takes its limit ``2 f_t``.

    Raises:
        ValueError: If *sample_frequency* is not positive.
    """
    if sample_frequency <= 0:
        raise ValueError(f"sample_frequency must be positive, got {sample_frequency}")
    f_t = cutoff_frequency / sample_frequency
    x = _offsets(radius)
    kernel = np.empty_like(x)
    nonzero = x != 0
    kernel[nonzero] = np.sin(2.0 * math.pi * f_t * x[nonzero]) / (math.pi * x[nonzero])
    kernel[~nonzero] = 2.0 * f_t
    return normalize(kernel)
