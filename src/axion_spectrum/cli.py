"""Command-line interface for axion_spectrum.

Provides a ``click``-based CLI with subcommands for inspecting raw
spectrum files, running the full analysis of a data run, searching for
background-subtraction filter parameters and exporting spectra as text.

Usage::

    axion-spectrum inspect data/SA_F0.csv --output f0.html --no-show
    axion-spectrum analyze data/ --config analysis.yaml --limits-output limits.csv
    axion-spectrum optimize data/SA_F0.csv --max-radius 20 --sample-frequency 10
    axion-spectrum export data/SA_F0.csv --output f0.csv --columns uncertainty
"""

from typing import Optional

import click

from axion_spectrum.config import AnalysisConfig, load_config
from axion_spectrum.errors import SpectrumError
from axion_spectrum.filters import auto_optimize
from axion_spectrum.formatters import format_frequency
from axion_spectrum.io import load_spectrum, save_frequency_power, save_power_uncertainty
from axion_spectrum.plotting import plot_spectrum
from axion_spectrum.runner import run_analysis
from axion_spectrum.spectrum import DEFAULT_BIN_POINTS

#: Column layouts accepted by ``export --columns``.
COLUMN_CHOICES = click.Choice(["frequency", "uncertainty"], case_sensitive=False)


def _echo_progress(message: str, progress: float) -> None:
    click.echo(f"[{progress:6.1%}] {message}")


def _load(path: str):
    try:
        return load_spectrum(path)
    except SpectrumError as exc:
        raise click.ClickException(f"{path}: {exc}")


@click.group()
@click.version_option(package_name="axion-spectrum")
def cli() -> None:
    """axion-spectrum: haloscope power spectrum analysis."""


@cli.command()
@click.argument("spectrum_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), default=None,
              help="Save plot to file (.html for interactive, .png for static).")
@click.option("--no-show", is_flag=True, default=False,
              help="Do not open the plot in a browser.")
@click.option("--title", "-t", default=None,
              help="Plot title (defaults to the file name).")
def inspect(spectrum_file: str, output: Optional[str], no_show: bool,
            title: Optional[str]) -> None:
    """Print the metadata of a raw spectrum file and plot it in Watts."""
    spec = _load(spectrum_file)
    meta = spec.metadata
    click.echo(f"Bins:              {spec.size()}")
    click.echo(f"Units:             {spec.units.label}")
    click.echo(f"Centre frequency:  {format_frequency(meta.center_frequency)}")
    click.echo(f"Span:              {format_frequency(meta.frequency_span)}")
    click.echo(f"Bin width:         {format_frequency(spec.bin_width())}")
    click.echo(f"Q:                 {meta.quality_factor}")
    click.echo(f"B field (T):       {meta.b_field}")
    click.echo(f"Noise temp. (K):   {meta.noise_temperature}")
    click.echo(f"Averages:          {meta.number_of_averages}")

    if output or not no_show:
        plot_spectrum(spec, title=title or spectrum_file, show=not no_show, output=output)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", "config_file", type=click.Path(), default=None,
              help="Analysis configuration YAML file.")
@click.option("--sift", default=None,
              help="Substring identifying raw data files (overrides config).")
@click.option("--confidence", type=float, default=None,
              help="Uncertainty multiplier for limits (overrides config).")
@click.option("--grand-output", type=click.Path(), default=None,
              help="Save the grand spectrum as frequency,power rows.")
@click.option("--limits-output", type=click.Path(), default=None,
              help="Save the exclusion limits as frequency,power rows.")
@click.option("--plot-output", type=click.Path(), default=None,
              help="Save the limit plot to file.")
@click.option("--no-show", is_flag=True, default=False,
              help="Do not open the plot in a browser.")
@click.option("--title", "-t", default="Exclusion Limits",
              help="Plot title.")
def analyze(
    directory: str,
    config_file: Optional[str],
    sift: Optional[str],
    confidence: Optional[float],
    grand_output: Optional[str],
    limits_output: Optional[str],
    plot_output: Optional[str],
    no_show: bool,
    title: str,
) -> None:
    """Combine every spectrum in DIRECTORY and derive exclusion limits."""
    config = AnalysisConfig()
    if config_file:
        try:
            config = load_config(config_file)
        except (FileNotFoundError, ValueError) as exc:
            raise click.ClickException(str(exc))
    if sift:
        config.sift_term = sift
    if confidence is not None:
        config.limit_confidence = confidence

    try:
        result = run_analysis(directory, config, progress_callback=_echo_progress)
    except SpectrumError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Combined {len(result.spectra)} spectra into {result.grand.size()} bins.")
    click.echo(f"Limit curve: {result.limits.size()} points.")

    if grand_output:
        save_frequency_power(result.grand, grand_output)
        click.echo(f"Saved grand spectrum to {grand_output}")
    if limits_output:
        save_frequency_power(result.limits, limits_output)
        click.echo(f"Saved limits to {limits_output}")

    if plot_output or not no_show:
        plot_spectrum(result.limits, title=title, show=not no_show, output=plot_output)


@cli.command()
@click.argument("spectrum_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-radius", type=int, default=20, show_default=True,
              help="Exclusive upper bound of the kernel radius search.")
@click.option("--sample-frequency", type=float, default=10.0, show_default=True,
              help="Sets the upper bound (half of it) of the sigma search.")
@click.option("--workers", type=int, default=None,
              help="Number of search threads.")
def optimize(spectrum_file: str, max_radius: int, sample_frequency: float,
             workers: Optional[int]) -> None:
    """Search unsharp-mask parameters that leave white-noise-like residuals."""
    spec = _load(spectrum_file)
    try:
        radius, sigma = auto_optimize(
            spec, max_radius, sample_frequency,
            max_workers=workers, progress_callback=_echo_progress,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Best radius: {radius}")
    click.echo(f"Best sigma:  {sigma:g}")


@cli.command()
@click.argument("spectrum_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", required=True, type=click.Path(),
              help="Output text file.")
@click.option("--columns", type=COLUMN_CHOICES, default="frequency", show_default=True,
              help="Write frequency,power or power,uncertainty rows.")
@click.option("--bin-points", type=int, default=DEFAULT_BIN_POINTS, show_default=True,
              help="Initial binning applied before power,uncertainty export.")
def export(spectrum_file: str, output: str, columns: str, bin_points: int) -> None:
    """Convert a raw spectrum to Watts and write it as text rows."""
    spec = _load(spectrum_file)
    try:
        if columns.lower() == "frequency":
            save_frequency_power(spec, output)
        else:
            spec.initial_bin(bin_points)
            save_power_uncertainty(spec, output)
    except (SpectrumError, ValueError) as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Saved {spec.size()} rows to {output}")


if __name__ == "__main__":
    cli()
