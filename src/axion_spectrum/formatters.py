"""Human-readable formatters for frequency and power values.

Spectrum frequencies are kept in MHz throughout the library; these
helpers pick a suitable unit suffix for display in plot hover text.
"""

import math
from typing import Optional, Union

# Frequency thresholds in Hz
_ONE_KHZ: int = 1_000
_ONE_MHZ: int = 1_000_000
_ONE_GHZ: int = 1_000_000_000


def format_frequency(value_mhz: Optional[Union[int, float]], places: int = 6) -> str:
    """Format a frequency given in MHz.

    * ``None``, ``NaN`` or negative -> ``""``
    * < 1 kHz -> ``"<n> Hz"``
    * < 1 MHz -> ``"<n> kHz"``
    * < 1 GHz -> ``"<n> MHz"``
    * otherwise -> ``"<n> GHz"``

    Up to *places* decimals are kept; trailing zeros and a dangling
    decimal point are stripped.

    Args:
        value_mhz: Frequency in MHz, or ``None``.
        places: Maximum number of decimal places.

    Returns:
        Formatted string, or ``""`` for missing / negative values.
    """
    if value_mhz is None or math.isnan(value_mhz) or value_mhz < 0:
        return ""

    hz = float(value_mhz) * _ONE_MHZ

    if hz < _ONE_KHZ:
        return f"{_format_decimal(hz, places)} Hz"
    if hz < _ONE_MHZ:
        return f"{_format_decimal(hz / _ONE_KHZ, places)} kHz"
    if hz < _ONE_GHZ:
        return f"{_format_decimal(hz / _ONE_MHZ, places)} MHz"
    return f"{_format_decimal(hz / _ONE_GHZ, places)} GHz"


def format_power(value: Optional[float]) -> str:
    """Format a power value with four significant digits.

    Powers in Watts are tiny (around 1e-15), so scientific notation is
    used whenever Python's ``g`` format chooses it.

    Returns:
        Formatted string, or ``""`` for ``None`` / ``NaN``.
    """
    if value is None or math.isnan(value):
        return ""
    return f"{value:.4g}"


def _format_decimal(value: float, places: int) -> str:
    formatted = f"{value:.{places}f}"
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return formatted
