"""
Plain-text output of the covariance matrix.

One line per row, every value followed by the field separator. The grid is
what the downstream eigen-decomposition script loads.
"""

import logging
from pathlib import Path

import numpy as np

from .exceptions import ConfigurationError
from .matrix import CovarianceMatrix

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "    "


def _format_value(value: float, float_format: str | None) -> str:
    if float_format is None:
        return repr(float(value))
    return float_format % float(value)


def check_float_format(float_format: str | None):
    """
    Reject a printf style format that does not render exactly one number.

    Raises:
        ConfigurationError: If formatting a float fails or gives no number back
    """
    if float_format is None:
        return
    try:
        float(float_format % 1.0)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid float format: {float_format!r}") from None


def check_output_path(filepath) -> Path:
    """Fail early if the output file could never be created."""
    path = Path(filepath)
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Output directory does not exist: \"{parent}\"")
    if path.is_dir():
        raise IsADirectoryError(f"Output path is a directory: \"{path}\"")
    return path


def format_covariance_matrix(
    matrix: CovarianceMatrix | np.ndarray,
    separator: str = FIELD_SEPARATOR,
    float_format: str | None = None,
) -> str:
    """
    Render the matrix as row-major text.

    Args:
        matrix: CovarianceMatrix or square array
        separator: Written after every value, including the last of a row
        float_format: printf style format such as "%g"; Python's repr if omitted

    Returns:
        The text, one line per row
    """
    rows = matrix.rows() if isinstance(matrix, CovarianceMatrix) else np.asarray(matrix)
    lines = []
    for row in rows:
        lines.append("".join(_format_value(v, float_format) + separator for v in row))
    return "\n".join(lines) + "\n"


def write_covariance_matrix(
    matrix: CovarianceMatrix | np.ndarray,
    filepath,
    separator: str = FIELD_SEPARATOR,
    float_format: str | None = None,
) -> Path:
    """Write the matrix to filepath and return the path."""
    path = Path(filepath)
    text = format_covariance_matrix(matrix, separator, float_format)
    with open(path, "w") as f:
        f.write(text)
    logger.info(f"Results were written to: {path}")
    return path


def read_covariance_matrix(filepath) -> np.ndarray:
    """Load a matrix written by write_covariance_matrix (whitespace separated)."""
    return np.loadtxt(filepath, dtype=np.float64, ndmin=2)
