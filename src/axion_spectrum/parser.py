"""Parser for the raw flat-file spectrum format.

Each data file written by the acquisition system looks like::

    sa_span;10
    fft_length;131072
    effective_volume;0.1
    bfield;1.54
    noise_temperature;400
    sa_averages;256
    Q;128.4913492063492
    actual_center_freq;4037.3840399002493
    fitted_hwhm;15.71072319201995
    cavity_length;7.693
    run_number;44
    @
    -116.0639877
    -116.0132904
    ...

The first :data:`HEADER_LINES` lines are ``name;value`` pairs, the next
line is a sentinel (usually ``@``) and every remaining line holds one
power sample in dBm.
"""

from typing import Dict, List, Tuple

import numpy as np

from axion_spectrum.errors import MalformedHeaderError, MalformedSampleError

#: Number of ``name;value`` lines at the top of a raw file.
HEADER_LINES: int = 11

#: Separator between header names and values.
HEADER_DELIMITER: str = ";"

#: Conventional content of the line separating header and samples.
SENTINEL: str = "@"


def parse_header(lines: List[str]) -> Dict[str, float]:
    """Convert header lines into a ``name -> value`` mapping.

    Lines with fewer than two ``;``-separated fields are ignored, which
    lets short headers pad themselves with blank lines.

    Args:
        lines: The header lines (without line terminators).

    Returns:
        Mapping of header names to float values.

    Raises:
        MalformedHeaderError: If a value is not a real number.
    """
    header: Dict[str, float] = {}
    for lineno, line in enumerate(lines, start=1):
        parts = line.split(HEADER_DELIMITER)
        if len(parts) < 2:
            continue
        name = parts[0].strip()
        raw_value = parts[1].strip()
        try:
            header[name] = float(raw_value)
        except ValueError:
            raise MalformedHeaderError(
                f"Header line {lineno}: value {raw_value!r} for "
                f"{name!r} is not a number"
            )
    return header


def parse_samples(lines: List[str], first_lineno: int = 1) -> np.ndarray:
    """Convert sample lines into a float array.

    Trailing blank lines are dropped; a blank line anywhere else is a
    malformed sample.

    Args:
        lines: One sample per entry.
        first_lineno: Line number of ``lines[0]`` in the source file,
            used in error messages.

    Returns:
        1-D ``float64`` array with one entry per line.

    Raises:
        MalformedSampleError: If a line is not a real number.
    """
    end = len(lines)
    while end > 0 and not lines[end - 1].strip():
        end -= 1

    samples = np.empty(end, dtype=np.float64)
    for i in range(end):
        raw_value = lines[i].strip()
        try:
            samples[i] = float(raw_value)
        except ValueError:
            raise MalformedSampleError(
                f"Line {first_lineno + i}: sample {raw_value!r} is not a number"
            )
    return samples


def parse_raw_spectrum(raw_data: str) -> Tuple[Dict[str, float], np.ndarray]:
    """Split a complete raw file into its header and its samples.

    Args:
        raw_data: The entire contents of a data file.

    Returns:
        ``(header, samples)`` where *header* maps names to values and
        *samples* holds the dBm power values in file order.

    Raises:
        MalformedHeaderError: If a header value is not numeric.
        MalformedSampleError: If a sample line is not numeric.
    """
    lines = raw_data.splitlines()
    header = parse_header(lines[:HEADER_LINES])
    # Skip the sentinel line between header and samples.
    sample_start = HEADER_LINES + 1
    samples = parse_samples(lines[sample_start:], first_lineno=sample_start + 1)
    return header, samples


def format_raw_spectrum(header: Dict[str, float], samples) -> str:
    """Render a header and samples back into the raw file format.

    The header is padded with empty lines (or truncated) to exactly
    :data:`HEADER_LINES` lines so the result parses back with
    :func:`parse_raw_spectrum`.
    """
    header_lines = [f"{name}{HEADER_DELIMITER}{value!r}" for name, value in header.items()]
    header_lines = header_lines[:HEADER_LINES]
    header_lines += [""] * (HEADER_LINES - len(header_lines))
    sample_lines = [repr(float(value)) for value in samples]
    return "\n".join(header_lines + [SENTINEL] + sample_lines) + "\n"
