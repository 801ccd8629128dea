"""Closed-form physics formulas used by the unit conversions.

Every function is a single expression and accepts either a float or a
numpy array, so the spectrum code can apply them to a whole frequency
axis at once.  Frequencies are in MHz throughout.
"""

import math

import numpy as np

ALPHA = 7.2973525376e-3
"""Fine-structure constant."""

PLANCK_EV = 4.13566766225e-15
"""Planck constant in eV s."""

G_KSVZ = 0.97
"""Model-dependent KSVZ coupling coefficient."""

BOLTZMANN = 1.3806488e-23
"""Boltzmann constant in W / Hz / K."""

KSVZ_POWER_SCALE = 2.278e-33
"""Conversion power prefactor for a 0.45 GeV/cm^3 halo density."""


def axion_width(frequency):
    """Expected axion line width (MHz) at *frequency* (MHz)."""
    return frequency * 10.0e-6 / 2.0


def ksvz_axion_coupling(frequency):
    """KSVZ photon coupling g_a_gamma_gamma in GeV^-1 at *frequency* (MHz)."""
    mass_ev = frequency * PLANCK_EV * 1e6
    return 1e-7 * (mass_ev / 0.62) * (ALPHA * G_KSVZ / math.pi)


def estimate_g_squared(frequency):
    """Square of :func:`ksvz_axion_coupling`."""
    return ksvz_axion_coupling(frequency) ** 2


def lorentzian(f0, frequency, q):
    """Lorentzian line shape centred on *f0* with quality factor *q*.

    ``L = G^2 / ((f - f0)^2 + G^2)`` with ``G = f / (2 q)``; equal to one
    at the centre frequency.
    """
    gamma = frequency / (2.0 * q)
    return gamma ** 2 / ((frequency - f0) ** 2 + gamma ** 2)


def max_ksvz_power(effective_volume, b_field, frequency, q):
    """Expected axion conversion power in Watts for a KSVZ axion."""
    return KSVZ_POWER_SCALE * b_field ** 2 * effective_volume * frequency * q


def power_per_bin(noise_temperature, bin_width):
    """Thermal noise power (Watts) in a bin of *bin_width* MHz."""
    return BOLTZMANN * noise_temperature * bin_width * 1e6


def dbm_to_watts(power_dbm):
    """Convert dBm to Watts."""
    return 10.0 ** (power_dbm / 10.0) / 1000.0


def watts_to_dbm(power_watts):
    """Inverse of :func:`dbm_to_watts`."""
    return 10.0 * np.log10(power_watts * 1000.0)
