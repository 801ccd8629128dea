"""YAML configuration for the end-to-end analysis.

A configuration file is a flat mapping; every key is optional::

    sift_term: SA_F
    initial_bin_points: 32
    unsharp_radius: 50        # null skips background subtraction
    unsharp_sigma: null       # null means radius / 2
    chop_start: 0
    chop_end: 0
    chop_truncate_span: true
    lorentzian_weight: false
    limit_confidence: 1.282
    limit_rebin_window: 600
    max_workers: null
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from axion_spectrum.analysis import LIMIT_CONFIDENCE_MULTIPLIER, LIMIT_REBIN_WINDOW
from axion_spectrum.io import DEFAULT_SIFT_TERM
from axion_spectrum.spectrum import DEFAULT_BIN_POINTS


@dataclass
class AnalysisConfig:
    """Parameters of :func:`~axion_spectrum.runner.run_analysis`.

    Attributes:
        sift_term: Substring identifying raw data files.
        initial_bin_points: Raw points per initial bin.
        unsharp_radius: Unsharp-mask radius, or ``None`` to skip
            background subtraction.
        unsharp_sigma: Unsharp-mask sigma, ``None`` for ``radius / 2``.
        chop_start: Bins removed from the start of each binned spectrum.
        chop_end: Bins removed from the end of each binned spectrum.
        chop_truncate_span: Integer-truncate the span rescaling on chop.
        lorentzian_weight: Apply Lorentzian weighting before KSVZ weighting.
        limit_confidence: Uncertainty multiplier for exclusion limits.
        limit_rebin_window: Conservative rebin window for limits.
        max_workers: Thread pool size for file loading.
    """

    sift_term: str = DEFAULT_SIFT_TERM
    initial_bin_points: int = DEFAULT_BIN_POINTS
    unsharp_radius: Optional[int] = None
    unsharp_sigma: Optional[float] = None
    chop_start: int = 0
    chop_end: int = 0
    chop_truncate_span: bool = True
    lorentzian_weight: bool = False
    limit_confidence: float = LIMIT_CONFIDENCE_MULTIPLIER
    limit_rebin_window: int = LIMIT_REBIN_WINDOW
    max_workers: Optional[int] = None


_INT_KEYS = {"initial_bin_points", "unsharp_radius", "chop_start", "chop_end",
             "limit_rebin_window", "max_workers"}
_FLOAT_KEYS = {"unsharp_sigma", "limit_confidence"}
_BOOL_KEYS = {"chop_truncate_span", "lorentzian_weight"}
_NULLABLE_KEYS = {"unsharp_radius", "unsharp_sigma", "max_workers"}
_MINIMUMS = {
    "initial_bin_points": 2,
    "unsharp_radius": 1,
    "chop_start": 0,
    "chop_end": 0,
    "limit_rebin_window": 1,
    "max_workers": 1,
}


def validate_config_yaml(data: object) -> None:
    """Check that parsed YAML has the structure of an :class:`AnalysisConfig`.

    Args:
        data: The object returned by ``yaml.safe_load()``.

    Raises:
        ValueError: Describing the first problem found.
    """
    if not isinstance(data, dict):
        raise ValueError(
            "Invalid config YAML: expected a mapping, "
            f"got {type(data).__name__}"
        )

    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Invalid config YAML: unknown keys {', '.join(map(str, unknown))}")

    for key, value in data.items():
        if value is None:
            if key not in _NULLABLE_KEYS:
                raise ValueError(f"Invalid config YAML: '{key}' may not be null")
            continue
        if key == "sift_term":
            if not isinstance(value, str) or not value:
                raise ValueError("Invalid config YAML: 'sift_term' must be a non-empty string")
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise ValueError(f"Invalid config YAML: '{key}' must be true or false")
        elif key in _INT_KEYS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(
                    f"Invalid config YAML: '{key}' must be an integer "
                    f"(got {type(value).__name__})"
                )
            if value < _MINIMUMS[key]:
                raise ValueError(
                    f"Invalid config YAML: '{key}' must be at least {_MINIMUMS[key]}"
                )
        elif key in _FLOAT_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(
                    f"Invalid config YAML: '{key}' must be a number "
                    f"(got {type(value).__name__})"
                )
            if value <= 0:
                raise ValueError(f"Invalid config YAML: '{key}' must be positive")


def config_from_mapping(data: Dict[str, Any]) -> AnalysisConfig:
    """Validate *data* and build an :class:`AnalysisConfig` from it."""
    validate_config_yaml(data)
    return AnalysisConfig(**data)


def load_config(path: Union[str, Path]) -> AnalysisConfig:
    """Load an analysis configuration from a YAML file.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file content is not a valid configuration.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        return AnalysisConfig()
    return config_from_mapping(data)
