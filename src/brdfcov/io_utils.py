import logging
import os
from pathlib import Path

import numpy as np
import psutil

from .config import HEADER_SIZE_BYTES
from .exceptions import SampleReadError

logger = logging.getLogger(__name__)

# Header written by write_sample when none is given: MERL BRDF angular resolution.
DEFAULT_HEADER = (90, 90, 180)


class SampleReader:
    """
    Reads BRDF sample vectors from disk, one file at a time.

    Each read opens the file, skips the header, fills a float64 buffer with
    exactly `dimension` values and closes the file again. Nothing stays
    open between reads.
    """

    def __init__(self, dimension: int, header_size_bytes: int = HEADER_SIZE_BYTES):
        self.dimension = dimension
        self.header_size_bytes = header_size_bytes
        self.reads = 0

    @property
    def expected_bytes(self) -> int:
        return self.dimension * np.dtype(np.float64).itemsize

    def allocate(self) -> np.ndarray:
        """A zeroed buffer of the right size for read()."""
        return np.zeros(self.dimension, dtype=np.float64)

    def read(self, path, out: np.ndarray | None = None) -> np.ndarray:
        """
        Read one sample vector.

        Args:
            path: Sample file
            out: Optional preallocated float64 buffer of length dimension

        Returns:
            The filled buffer

        Raises:
            SampleReadError: If the file cannot be opened or holds fewer values than expected
        """
        if out is None:
            out = self.allocate()
        if out.dtype != np.float64 or out.shape != (self.dimension,) or not out.flags.c_contiguous:
            raise ValueError(
                f"Read buffer must be a contiguous float64 array of shape ({self.dimension},)"
            )

        target = out.view(np.uint8)
        try:
            with open(path, "rb") as f:
                f.seek(self.header_size_bytes)
                filled = 0
                while filled < self.expected_bytes:
                    n = f.readinto(target[filled:])
                    if not n:
                        break
                    filled += n
        except OSError as e:
            raise SampleReadError(path, f"Could not read file ({e.strerror or e})") from e

        if filled != self.expected_bytes:
            raise SampleReadError(
                path, f"Short read: got {filled} of {self.expected_bytes} bytes"
            )

        self.reads += 1
        return out


def read_header(path) -> tuple[int, int, int]:
    """Return the three header ints of a sample file (diagnostics only)."""
    try:
        with open(path, "rb") as f:
            header = np.fromfile(f, dtype=np.int32, count=3)
    except OSError as e:
        raise SampleReadError(path, "Could not open file") from e
    if header.size != 3:
        raise SampleReadError(path, "File too short to hold a header")
    return int(header[0]), int(header[1]), int(header[2])


def write_sample(path, vector: np.ndarray, header: tuple[int, int, int] = DEFAULT_HEADER) -> Path:
    """
    Write a sample vector in the on-disk BRDF layout (3 int32 header + float64 data).

    Used to build synthetic datasets and test fixtures.
    """
    path = Path(path)
    with open(path, "wb") as f:
        np.asarray(header, dtype=np.int32).tofile(f)
        np.ascontiguousarray(vector, dtype=np.float64).tofile(f)
    return path


def check_sample_files(paths, dimension: int, header_size_bytes: int = HEADER_SIZE_BYTES) -> list[Path]:
    """
    Make sure every sample exists and is large enough before any computation starts.

    Returns:
        The paths as Path objects, in input order

    Raises:
        SampleReadError: For the first missing or truncated file
    """
    expected = header_size_bytes + dimension * np.dtype(np.float64).itemsize
    checked = []
    for path in paths:
        path = Path(path)
        if not path.is_file():
            raise SampleReadError(path, "Could not open file")
        size = os.path.getsize(path)
        if size < expected:
            raise SampleReadError(path, f"File holds {size} bytes, expected at least {expected}")
        logger.debug(f'Opened input file: "{path}"')
        checked.append(path)
    logger.info(f"Found {len(checked)} BRDFs.")
    return checked


def get_available_memory_mb():
    return psutil.virtual_memory().available / (1024 * 1024)


def fits_in_memory(n_vectors: int, dimension: int, fraction: float = 0.5) -> bool:
    """
    Whether n_vectors float64 vectors fit in the given fraction of available RAM.
    """
    required_mb = n_vectors * dimension * 8 / (1024 * 1024)
    available_mb = get_available_memory_mb()
    threshold_mb = available_mb * fraction
    logger.info(
        f"Vector cache needs ~{required_mb:.2f} MB, "
        f"available RAM: {available_mb:.2f} MB (Threshold: {threshold_mb:.2f} MB)"
    )
    return required_mb <= threshold_mb
