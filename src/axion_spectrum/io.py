"""File I/O for raw spectrum files and exported text.

This module provides :class:`FlatFileReader`, which loads every raw
data file of a run directory in parallel, plus helpers to load a single
file as a :class:`~axion_spectrum.spectrum.SingleSpectrum` and to export
spectra as two-column delimited text.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from axion_spectrum.errors import OutOfRangeError
from axion_spectrum.parser import format_raw_spectrum
from axion_spectrum.progress import ProgressCallback, ProgressReporter
from axion_spectrum.spectrum import SingleSpectrum

#: Substring common to the names of raw spectrum files.
DEFAULT_SIFT_TERM: str = "SA_F"


def enumerate_files(directory: Union[str, Path], sift_term: str = DEFAULT_SIFT_TERM) -> List[Path]:
    """List the regular files in *directory* whose name contains *sift_term*.

    Args:
        directory: Directory to scan (not recursive).
        sift_term: Substring every data file name contains.

    Returns:
        Matching paths sorted by file name.

    Raises:
        FileNotFoundError: If *directory* does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Data directory not found: {directory}")
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and sift_term in p.name),
        key=lambda p: p.name,
    )


def read_text(path: Union[str, Path]) -> str:
    """Return the entire contents of *path*."""
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


class FlatFileReader:
    """Contents of every raw data file in a run directory.

    Files are read concurrently; each worker returns its own
    ``(path, text)`` pair and the results are ordered by file name once
    the pool finishes.

    Example:
        >>> reader = FlatFileReader("data/run44/", sift_term="SA_F")
        >>> reader.count()
        120
        >>> raw = reader.get(0)
    """

    def __init__(
        self,
        directory: Union[str, Path],
        sift_term: str = DEFAULT_SIFT_TERM,
        max_workers: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Find and load all matching files.

        Raises:
            FileNotFoundError: If *directory* does not exist.
        """
        paths = enumerate_files(directory, sift_term)
        reporter = ProgressReporter(progress_callback)

        loaded: List[Tuple[Path, str]] = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(read_text, p) for p in paths]
            for done, (path, future) in enumerate(zip(paths, futures), start=1):
                loaded.append((path, future.result()))
                reporter.advance(done, len(paths), "Loading spectra")

        loaded.sort(key=lambda item: item[0].name)
        self.paths: List[Path] = [path for path, _ in loaded]
        self._raw_data: List[str] = [text for _, text in loaded]

    def count(self) -> int:
        """Number of loaded files."""
        return len(self._raw_data)

    def __len__(self) -> int:
        return self.count()

    def get(self, index: int) -> str:
        """Raw contents of the file at *index*.

        Raises:
            OutOfRangeError: If *index* is not below :meth:`count`.
        """
        if index < 0 or index >= len(self._raw_data):
            raise OutOfRangeError(
                f"Requested index of {index} is greater than the number of "
                f"loaded files ({len(self._raw_data)})"
            )
        return self._raw_data[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._raw_data)


def load_spectrum(path: Union[str, Path]) -> SingleSpectrum:
    """Read a raw data file into a spectrum (converted to Watts).

    Raises:
        FileNotFoundError: If *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spectrum file not found: {path}")
    return SingleSpectrum(read_text(path))


def _write_rows(rows: Iterable[Tuple[float, float]], path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        for first, second in rows:
            fh.write(f"{first!r},{second!r}\n")


def save_frequency_power(spec: SingleSpectrum, path: Union[str, Path]) -> None:
    """Write ``frequency,power`` rows, frequency being each bin's left edge (MHz)."""
    _write_rows(spec.frequency_power_rows(), path)


def save_power_uncertainty(spec: SingleSpectrum, path: Union[str, Path]) -> None:
    """Write ``power,uncertainty`` rows.

    Raises:
        SizeMismatchError: If the uncertainty has not been populated.
    """
    _write_rows(spec.power_uncertainty_rows(), path)


def save_raw_spectrum(spec: SingleSpectrum, path: Union[str, Path]) -> None:
    """Write *spec* in the raw header + samples format.

    Power values are written in whatever unit the spectrum is in; only
    a dBm spectrum reads back to the same values.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(format_raw_spectrum(spec.metadata.to_header(), spec.power))
