"""One-dimensional linear convolution with mirrored boundaries."""

import numpy as np


def reflect_index(p: int, n: int) -> int:
    """Map an out-of-range index onto ``[0, n-1]`` by mirroring.

    ``p < 0`` maps to ``-p`` and ``p > n-1`` maps to ``2 (n-1) - p``;
    the edge sample itself is not repeated.  Indices more than one
    signal length away are reflected again until they land inside.
    """
    if n == 1:
        return 0
    period = 2 * (n - 1)
    p = abs(p) % period
    return p if p < n else period - p


def linear_convolve(signal, kernel) -> np.ndarray:
    """Convolve *signal* with an odd-length *kernel*.

    For a kernel of length ``2k + 1`` the output is
    ``out[i] = sum_j signal[i + j - k] * kernel[j]`` for ``j`` in
    ``[0, 2k]``, with out-of-range indices resolved by
    :func:`reflect_index`.  The output has the same length as *signal*.

    Args:
        signal: 1-D input samples.
        kernel: 1-D weights of odd length.

    Returns:
        The filtered signal as a new ``float64`` array.

    Raises:
        ValueError: If the kernel length is even or zero.
    """
    signal = np.asarray(signal, dtype=np.float64)
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.size % 2 != 1:
        raise ValueError(f"Kernel length must be odd, got {kernel.size}")
    if signal.size == 0:
        return signal.copy()

    k = kernel.size // 2
    # np.pad's "reflect" mode mirrors without repeating the edge sample.
    padded = np.pad(signal, k, mode="reflect") if k else signal
    return np.correlate(padded, kernel, mode="valid")
