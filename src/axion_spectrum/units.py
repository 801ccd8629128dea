"""Unit tags carried by a spectrum and the legal transitions between them.

A spectrum only ever moves forward through these states::

    DBM -> WATTS -> EXCESS_POWER -> AXION_POWER
                                 \\-> (Lorentzian weighting, tag unchanged)

``EXCL_LIMIT_90`` is only produced by the aggregator when deriving
exclusion limits.  :func:`transition` is the single place that knows
which operation may run in which state.
"""

from enum import Enum
from typing import Dict, Tuple

from axion_spectrum.errors import InvalidStateError


class Units(Enum):
    """What the power and uncertainty arrays of a spectrum represent."""

    DBM = "dBm"
    WATTS = "Watts"
    EXCESS_POWER = "ExcessPower"
    AXION_POWER = "AxionPower"
    EXCL_LIMIT_90 = "ExclLimit90"

    @property
    def label(self) -> str:
        """Axis label used by plots and reports."""
        return _LABELS[self]

    def __str__(self) -> str:
        return self.value


_LABELS: Dict[Units, str] = {
    Units.DBM: "dBm",
    Units.WATTS: "Watts",
    Units.EXCESS_POWER: "Excess Power in Cavity (Watts)",
    Units.AXION_POWER: "Power Deposited by Axion",
    Units.EXCL_LIMIT_90: "G a gamma gamma (GeV^-1)",
}

#: operation name -> (required unit, resulting unit)
TRANSITIONS: Dict[str, Tuple[Units, Units]] = {
    "dbm_to_watts": (Units.DBM, Units.WATTS),
    "initial_bin": (Units.WATTS, Units.WATTS),
    "watts_to_excess_power": (Units.WATTS, Units.EXCESS_POWER),
    "lorentzian_weight": (Units.EXCESS_POWER, Units.EXCESS_POWER),
    "ksvz_weight": (Units.EXCESS_POWER, Units.AXION_POWER),
}


def transition(current: Units, operation: str) -> Units:
    """Return the unit a spectrum ends up in after *operation*.

    Args:
        current: The spectrum's present unit.
        operation: A key of :data:`TRANSITIONS`.

    Returns:
        The resulting unit.

    Raises:
        InvalidStateError: If *current* is not the unit *operation*
            requires.
        KeyError: If *operation* is unknown.
    """
    required, result = TRANSITIONS[operation]
    if current is not required:
        raise InvalidStateError(operation, required, current)
    return result
