"""Instrument metadata attached to every spectrum.

This module defines :class:`SpectrumMetadata`, the set of experiment
parameters read from the header block of a raw data file (cavity
centre frequency, span, quality factor, magnet field, ...).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from axion_spectrum.errors import MalformedHeaderError

#: Header keys that must be present to build a spectrum.
REQUIRED_HEADER_KEYS: List[str] = [
    "sa_span",
    "fft_length",
    "effective_volume",
    "bfield",
    "noise_temperature",
    "sa_averages",
    "Q",
    "actual_center_freq",
    "fitted_hwhm",
]


@dataclass
class SpectrumMetadata:
    """Experiment parameters of a single measured spectrum.

    Attributes:
        center_frequency: Cavity centre frequency in MHz.
        frequency_span: Spectrum analyser span in MHz.
        quality_factor: Loaded quality factor of the cavity.
        effective_volume: Effective cavity volume in cm^3.
        b_field: Magnetic field in Tesla.
        noise_temperature: System noise temperature in Kelvin.
        number_of_averages: Number of averages taken by the analyser.
        fft_points: Number of time-series points per FFT.
        fitted_hwhm: Fitted half width at half maximum in MHz.
        extra: Any other header entries, kept verbatim.
    """

    center_frequency: float = 0.0
    frequency_span: float = 0.0
    quality_factor: float = 0.0
    effective_volume: float = 0.0
    b_field: float = 0.0
    noise_temperature: float = 0.0
    number_of_averages: int = 0
    fft_points: int = 0
    fitted_hwhm: float = 0.0
    extra: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_header(cls, header: Mapping[str, float]) -> "SpectrumMetadata":
        """Build metadata from a parsed ``name -> value`` header.

        Args:
            header: Mapping produced by
                :func:`~axion_spectrum.parser.parse_header`.

        Returns:
            A populated :class:`SpectrumMetadata`.

        Raises:
            MalformedHeaderError: If any of :data:`REQUIRED_HEADER_KEYS`
                is missing.  The message lists every missing key.
        """
        missing = [key for key in REQUIRED_HEADER_KEYS if key not in header]
        if missing:
            raise MalformedHeaderError(
                "Insufficient information to build spectrum, missing "
                f"header keys: {', '.join(missing)}"
            )

        extra = {k: v for k, v in header.items() if k not in REQUIRED_HEADER_KEYS}
        return cls(
            center_frequency=header["actual_center_freq"],
            frequency_span=header["sa_span"],
            quality_factor=header["Q"],
            effective_volume=header["effective_volume"],
            b_field=header["bfield"],
            noise_temperature=header["noise_temperature"],
            number_of_averages=int(header["sa_averages"]),
            fft_points=int(header["fft_length"]),
            fitted_hwhm=header["fitted_hwhm"],
            extra=extra,
        )

    def to_header(self) -> Dict[str, float]:
        """Inverse of :meth:`from_header`, in the file's key order."""
        header: Dict[str, float] = {
            "sa_span": self.frequency_span,
            "fft_length": self.fft_points,
            "effective_volume": self.effective_volume,
            "bfield": self.b_field,
            "noise_temperature": self.noise_temperature,
            "sa_averages": self.number_of_averages,
            "Q": self.quality_factor,
            "actual_center_freq": self.center_frequency,
            "fitted_hwhm": self.fitted_hwhm,
        }
        header.update(self.extra)
        return header

    def copy(self) -> "SpectrumMetadata":
        """Return an independent copy (``extra`` is copied too)."""
        return SpectrumMetadata(
            center_frequency=self.center_frequency,
            frequency_span=self.frequency_span,
            quality_factor=self.quality_factor,
            effective_volume=self.effective_volume,
            b_field=self.b_field,
            noise_temperature=self.noise_temperature,
            number_of_averages=self.number_of_averages,
            fft_points=self.fft_points,
            fitted_hwhm=self.fitted_hwhm,
            extra=dict(self.extra),
        )
