"""Stream definition file IO.

The stream file is plain text::

    N
    X_start Y_start X_end Y_end Q_rate Width
    ...                                      (N rows)

`Width` is the half-width of the stream. Blank lines and lines starting
with ``#`` are ignored, rows after the first N are ignored and extra columns
on a row are ignored. Anything else that does not parse is a load error:
the loader either returns a complete catalog or raises `StreamLoadError`.
"""

from pathlib import Path
from typing import Optional, Union
import logging
import warnings

import numpy as np

from gwflow.streams.catalog import StreamCatalog
from gwflow.streams.config import StreamGeometryConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_N_COLUMNS = 6


class StreamLoadError(Exception):
    """Raised when a stream definition file cannot be turned into a catalog."""


def _read_count(fh, path) -> int:
    for line in fh:
        text = line.strip()
        if not text or text.startswith('#'):
            continue
        token = text.split()[0]
        try:
            n = int(token)
        except ValueError as e:
            raise StreamLoadError(f'{path}: first line must hold the segment count, got {token!r}') from e
        if n < 0:
            raise StreamLoadError(f'{path}: negative segment count {n}')
        return n
    raise StreamLoadError(f'{path}: file is empty')


def load_stream_table(path: PathLike) -> np.ndarray:
    """Parse a stream file into an (N,6) float array without building geometry."""
    path = Path(path)
    try:
        with open(path, 'r') as fh:
            n = _read_count(fh, path)
            if n == 0:
                return np.zeros((0, _N_COLUMNS), dtype=float)
            with warnings.catch_warnings():
                # an empty body is reported below as a short file
                warnings.simplefilter('ignore', UserWarning)
                data = np.loadtxt(fh, dtype=float, comments='#', usecols=range(_N_COLUMNS),
                                  max_rows=n, ndmin=2)
    except OSError as e:
        raise StreamLoadError(f"Can't open the stream file {path}: {e}") from e
    except ValueError as e:
        raise StreamLoadError(f'{path}: malformed stream row: {e}') from e

    if data.shape[0] < n:
        raise StreamLoadError(f'{path}: expected {n} stream segments, found {data.shape[0]}')
    if not np.all(np.isfinite(data)):
        raise StreamLoadError(f'{path}: stream rows contain non-finite values')
    return data


def read_streams(path: PathLike, config: Optional[StreamGeometryConfig] = None) -> StreamCatalog:
    """Read a stream definition file and build the catalog.

    Raises `StreamLoadError` for a missing, unreadable or malformed file.
    Degenerate segments do not fail the load; they are kept in the catalog
    with a DEGENERATE footprint so ids still follow file order.
    """
    data = load_stream_table(path)
    try:
        catalog = StreamCatalog.from_arrays(data[:, 0:2], data[:, 2:4], data[:, 4], data[:, 5], config=config)
    except ValueError as e:
        raise StreamLoadError(f'{path}: {e}') from e
    logger.info('Read %d stream segments from %s', len(catalog), path)
    return catalog


def write_streams(path: PathLike, catalog: StreamCatalog) -> Path:
    """Write `catalog` back out in the stream file format."""
    path = Path(path)
    rows = np.array([[s.a[0], s.a[1], s.b[0], s.b[1], s.rate, s.half_width] for s in catalog],
                    dtype=float).reshape(-1, _N_COLUMNS)
    np.savetxt(path, rows, fmt='%.17g', header=str(len(catalog)), comments='')
    return path
