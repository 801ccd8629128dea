"""Shared test fixtures and helpers for axion_spectrum tests."""

from typing import Dict, Optional, Sequence

import pytest

#: Header of a typical measurement, in file order.
DEFAULT_HEADER: Dict[str, float] = {
    "sa_span": 10,
    "fft_length": 131072,
    "effective_volume": 0.1,
    "bfield": 1.54,
    "noise_temperature": 400,
    "sa_averages": 256,
    "Q": 128.49,
    "actual_center_freq": 4037.38,
    "fitted_hwhm": 15.71,
    "cavity_length": 7.693,
    "run_number": 44,
}


def build_raw(samples: Sequence[float], header: Optional[Dict[str, float]] = None) -> str:
    """Render a raw spectrum file: 11 header lines, sentinel, samples."""
    header = DEFAULT_HEADER if header is None else header
    lines = [f"{name};{value}" for name, value in header.items()]
    lines += [""] * (11 - len(lines))
    lines.append("@")
    lines += [str(s) for s in samples]
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_raw():
    """Return the :func:`build_raw` helper."""
    return build_raw


@pytest.fixture
def raw_blob() -> str:
    """Full-size raw file: 131072 identical samples of -116.0 dBm."""
    return build_raw([-116.0] * 131072)


@pytest.fixture
def small_raw() -> str:
    """Raw file with 1024 samples alternating around -116 dBm."""
    samples = [-116.0 + (0.5 if i % 2 else -0.5) for i in range(1024)]
    header = dict(DEFAULT_HEADER, fft_length=1024)
    return build_raw(samples, header)


@pytest.fixture
def default_header() -> Dict[str, float]:
    """A fresh copy of :data:`DEFAULT_HEADER`."""
    return dict(DEFAULT_HEADER)
