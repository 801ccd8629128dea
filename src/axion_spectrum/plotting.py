"""Interactive spectrum plots with Plotly.

Both plot functions take a finished
:class:`~axion_spectrum.spectrum.SingleSpectrum` and a title.  The
frequency axis is derived from the spectrum (bin left edges, in MHz) and
the power axis is labelled with the spectrum's current unit.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import plotly.graph_objects as go

from axion_spectrum.errors import OutOfRangeError
from axion_spectrum.formatters import format_frequency, format_power
from axion_spectrum.spectrum import SingleSpectrum


def _save_figure(fig: go.Figure, output: Union[str, Path]) -> None:
    """Save a figure: ``.html`` -> interactive HTML, else static image via kaleido."""
    output = Path(output)
    if output.suffix.lower() == ".html":
        fig.write_html(str(output))
    else:
        fig.write_image(str(output), width=1920, height=1080)


def _hover_texts(freqs, values, label: str):
    return [
        f"{format_frequency(f)}<br>{format_power(v)} {label}"
        for f, v in zip(freqs, values)
    ]


def _finish(fig: go.Figure, title: str, spec: SingleSpectrum,
            show: bool, output: Optional[Union[str, Path]]) -> go.Figure:
    fig.update_layout(
        title=title,
        xaxis_title="Frequency (MHz)",
        yaxis_title=f"Power ({spec.units.label})",
        hovermode="x unified",
        template="plotly_dark",
    )
    if output:
        _save_figure(fig, output)
    if show:
        fig.show()
    return fig


def plot_spectrum(
    spec: SingleSpectrum,
    title: str = "Power Spectrum",
    show: bool = True,
    output: Optional[Union[str, Path]] = None,
) -> go.Figure:
    """Plot every power value of *spec* as a connected line.

    Uncertainties are not drawn.

    Args:
        spec: Spectrum to plot.
        title: Chart title.
        show: If ``True``, opens the plot in the default browser.
        output: Optional file path to save the plot.

    Returns:
        The Plotly :class:`~plotly.graph_objects.Figure`.
    """
    freqs = spec.frequencies().tolist()
    power = spec.power.tolist()
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=freqs,
        y=power,
        mode="lines",
        name=f"Power: {spec.units.label}",
        hovertext=_hover_texts(freqs, power, spec.units.value),
        hoverinfo="text",
    ))
    return _finish(fig, title, spec, show, output)


def plot_spectrum_errors(
    spec: SingleSpectrum,
    num_plot_points: int,
    title: str = "Power Spectrum",
    show: bool = True,
    output: Optional[Union[str, Path]] = None,
) -> go.Figure:
    """Plot a decimated spectrum as points with uncertainty error bars.

    Every ``size // num_plot_points``-th bin is drawn, starting at bin 0.

    Args:
        spec: Spectrum to plot; its uncertainty must be populated.
        num_plot_points: Approximate number of points to draw.
        title: Chart title.
        show: If ``True``, opens the plot in the default browser.
        output: Optional file path to save the plot.

    Returns:
        The Plotly :class:`~plotly.graph_objects.Figure`.

    Raises:
        OutOfRangeError: If *num_plot_points* exceeds the spectrum size.
        ValueError: If *num_plot_points* is not positive.
    """
    if num_plot_points > spec.size():
        raise OutOfRangeError(
            f"Requested number of points ({num_plot_points}) exceeds size "
            f"of spectrum ({spec.size()})"
        )
    if num_plot_points < 1:
        raise ValueError(f"num_plot_points must be positive, got {num_plot_points}")

    pivot = spec.size() // num_plot_points
    indices = np.arange(0, spec.size(), pivot)
    freqs = spec.frequencies()[indices].tolist()
    power = spec.power[indices].tolist()
    errors = spec.uncertainty[indices].tolist()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=freqs,
        y=power,
        mode="markers",
        name="Power",
        error_y=dict(type="data", array=errors, visible=True),
        hovertext=_hover_texts(freqs, power, spec.units.value),
        hoverinfo="text",
    ))
    return _finish(fig, title, spec, show, output)
