"""
Run configuration for the covariance computation.

The configuration is resolved once, before any file is touched, and is
read-only afterwards. The vector dimension is derived from it and threaded
explicitly to every component.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import ConfigurationError

# Number of BRDF measurements in a single color channel (90 x 90 x 180).
NUMEL_1_BRDF_CHANNEL = 90 * 90 * 180

# Three 4-byte ints precede the doubles in every sample file.
HEADER_SIZE_BYTES = 3 * 4

DEFAULT_NUM_COLOR_CHANNELS = 3


class BackendType(Enum):
    """Available VectorOps implementations."""

    NUMPY = "numpy"
    BLAS = "blas"
    REFERENCE = "reference"


class CacheMode(Enum):
    """Whether transformed vectors are kept in memory between dot products."""

    NEVER = "never"
    AUTO = "auto"
    ALWAYS = "always"


@dataclass(frozen=True)
class CovarianceConfig:
    """
    Immutable settings for one covariance run.

    Attributes:
        take_log: Apply the sign-preserving natural log to every value
        whiten_data: Compute the mean vector and subtract it from every sample
        scale_covariances: Divide each dot product by the vector dimension
        whiten_before_log: Subtract the mean before taking the log (else after)
        num_color_channels: Number of color channels in each BRDF
        per_channel_elements: Number of measurements in one channel
        header_size_bytes: Bytes to skip at the start of each sample file
        backend: VectorOps backend name
        cache_vectors: Transformed vector cache policy
    """

    take_log: bool = True
    whiten_data: bool = True
    scale_covariances: bool = False
    whiten_before_log: bool = True
    num_color_channels: int = DEFAULT_NUM_COLOR_CHANNELS
    per_channel_elements: int = NUMEL_1_BRDF_CHANNEL
    header_size_bytes: int = HEADER_SIZE_BYTES
    backend: BackendType = BackendType.NUMPY
    cache_vectors: CacheMode = CacheMode.NEVER

    def __post_init__(self):
        for name in ("take_log", "whiten_data", "scale_covariances", "whiten_before_log"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean, got {getattr(self, name)!r}")

        for name in ("num_color_channels", "per_channel_elements"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if isinstance(self.header_size_bytes, bool) or not isinstance(self.header_size_bytes, int) \
                or self.header_size_bytes < 0:
            raise ConfigurationError(
                f"header_size_bytes must be a non-negative integer, got {self.header_size_bytes!r}"
            )

        # Accept plain strings for the enum fields; frozen dataclass needs object.__setattr__
        object.__setattr__(self, "backend", _coerce_enum(BackendType, self.backend, "backend"))
        object.__setattr__(
            self, "cache_vectors", _coerce_enum(CacheMode, self.cache_vectors, "cache_vectors")
        )

    @property
    def dimension(self) -> int:
        """Length of every sample vector."""
        return self.per_channel_elements * self.num_color_channels

    @property
    def sample_size_bytes(self) -> int:
        """Bytes of vector data (excluding the header) in one sample file."""
        return self.dimension * 8

    def to_dict(self) -> dict[str, Any]:
        return {
            "take_log": self.take_log,
            "whiten_data": self.whiten_data,
            "scale_covariances": self.scale_covariances,
            "whiten_before_log": self.whiten_before_log,
            "num_color_channels": self.num_color_channels,
            "per_channel_elements": self.per_channel_elements,
            "header_size_bytes": self.header_size_bytes,
            "backend": self.backend.value,
            "cache_vectors": self.cache_vectors.value,
            "dimension": self.dimension,
        }


def _coerce_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = [member.value for member in enum_cls]
        raise ConfigurationError(f"Unknown {name} '{value}'. Available: {choices}") from None


_TRUE_STRINGS = {"true", "1", "yes", "on", "y"}
_FALSE_STRINGS = {"false", "0", "no", "off", "n"}


def parse_bool(value: str | bool) -> bool:
    """
    Interpret a command line style boolean.

    Args:
        value: 'true'/'false', '1'/'0', 'yes'/'no' or 'on'/'off' (any case)

    Returns:
        The parsed boolean

    Raises:
        ConfigurationError: If the value is not a recognised boolean
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigurationError(f"Could not parse boolean value: {value!r}")


def create_covariance_config(**kwargs) -> CovarianceConfig:
    """
    Create a covariance configuration, filling in the defaults.

    Boolean options may be given as strings ("true", "0", ...), which is
    what the command line passes through.

    Args:
        **kwargs: Any CovarianceConfig field

    Returns:
        Validated CovarianceConfig
    """
    unknown = set(kwargs) - set(CovarianceConfig.__dataclass_fields__)
    if unknown:
        raise ConfigurationError(f"Unknown configuration option(s): {sorted(unknown)}")

    for name in ("take_log", "whiten_data", "scale_covariances", "whiten_before_log"):
        if name in kwargs:
            kwargs[name] = parse_bool(kwargs[name])

    return CovarianceConfig(**kwargs)
