"""Power spectrum analysis for resonant-cavity axion searches."""

from axion_spectrum.analysis import Spectrum
from axion_spectrum.spectrum import SingleSpectrum
from axion_spectrum.units import Units

__version__ = "0.1.0"

__all__ = ["SingleSpectrum", "Spectrum", "Units", "__version__"]
