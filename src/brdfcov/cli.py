"""
Command line interface for brdfcov.

Computes the covariance matrix of a set of measured BRDFs, the first step of
a PCA. Each BRDF is considered as a vector from R^(90*90*180*channels), as
described in "A Data-Driven Reflectance Model" by Matusik et al.

Finding the principal components still requires an eigen-analysis of the
resulting matrix, which is done by a separate script.
"""

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .config import (
    DEFAULT_NUM_COLOR_CHANNELS,
    NUMEL_1_BRDF_CHANNEL,
    BackendType,
    CacheMode,
    CovarianceConfig,
    create_covariance_config,
    parse_bool,
)
from .engine import CovarianceEngine
from .exceptions import ConfigurationError, CovarianceError, SampleReadError
from .writer import check_float_format, check_output_path

logger = logging.getLogger(__name__)

# Output names that look like input BRDFs; writing to them asks for confirmation.
WARN_ENDINGS = (".binary", ".brdf", ".sbrdf")


def _bool_arg(value: str) -> bool:
    try:
        return parse_bool(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brdfcov",
        description="Compute a covariance matrix from a large set of measured BRDFs "
        "(the first step in PCA).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Defaults: log on, whitening on (before the log), 3 color channels
  brdfcov a.binary b.binary c.binary cov.txt

  # Plain dot products, no log, no mean subtraction
  brdfcov --take_natural_log=false --whiten_data=false *.binary cov.txt

  # Scale by 1/dimension and subtract the mean of the log values
  brdfcov --scale_covariances=true --whiten_before_log=false *.binary cov.txt

Note: if the log is taken, the eigen-analysis script must undo it later.
        """,
    )

    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Input BRDF files followed by the output file name",
    )

    parser.add_argument(
        "--take_natural_log",
        type=_bool_arg,
        default=True,
        help="Take the (sign-preserving) natural log of each BRDF value (default: true)",
    )
    parser.add_argument(
        "--whiten_data",
        type=_bool_arg,
        default=True,
        help="Whiten the data, i.e. subtract the mean vector (default: true)",
    )
    parser.add_argument(
        "--scale_covariances",
        type=_bool_arg,
        default=False,
        help="Use (1/N)dot(x,y) instead of dot(x,y) for cov(x,y) (default: false)",
    )
    parser.add_argument(
        "--whiten_before_log",
        type=_bool_arg,
        default=True,
        help="Whiten the raw BRDF rather than the log-BRDF (default: true)",
    )
    parser.add_argument(
        "--num_color_channels",
        "--num_channels",
        dest="num_color_channels",
        type=int,
        default=DEFAULT_NUM_COLOR_CHANNELS,
        help=f"Number of color channels in each BRDF (default: {DEFAULT_NUM_COLOR_CHANNELS})",
    )

    advanced_group = parser.add_argument_group("Advanced Options")
    advanced_group.add_argument(
        "--per_channel_elements",
        type=int,
        default=NUMEL_1_BRDF_CHANNEL,
        help=f"Measurements per color channel (default: {NUMEL_1_BRDF_CHANNEL})",
    )
    advanced_group.add_argument(
        "--backend",
        choices=[b.value for b in BackendType],
        default=BackendType.NUMPY.value,
        help="Vector math backend (default: numpy)",
    )
    advanced_group.add_argument(
        "--cache",
        choices=[m.value for m in CacheMode],
        default=CacheMode.NEVER.value,
        help="Keep transformed BRDFs in memory instead of re-reading them (default: never)",
    )
    advanced_group.add_argument(
        "--float_format",
        default=None,
        help='printf style format for output values, e.g. "%%g" (default: full precision)',
    )
    advanced_group.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask before writing to a BRDF-like name"
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--version", action="version", version=f"brdfcov {__version__}")
    return parser


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def looks_like_brdf(out_name: str) -> bool:
    return any(out_name.endswith(ending) for ending in WARN_ENDINGS)


def confirm_output_name(out_name: str, input_fn: Callable[[str], str] = input) -> bool:
    """
    Ask the user before overwriting something that looks like a BRDF file.

    Returns:
        True to proceed, False to abort
    """
    if not looks_like_brdf(out_name):
        return True

    print(f'WARNING - The output file name, "{out_name}" looks like a BRDF file,')
    answer = ""
    while answer not in ("y", "n"):
        try:
            answer = input_fn("Proceed? (y/n): ").strip().lower()[:1]
        except EOFError:
            return False
    return answer == "y"


def config_from_args(args: argparse.Namespace) -> CovarianceConfig:
    return create_covariance_config(
        take_log=args.take_natural_log,
        whiten_data=args.whiten_data,
        scale_covariances=args.scale_covariances,
        whiten_before_log=args.whiten_before_log,
        num_color_channels=args.num_color_channels,
        per_channel_elements=args.per_channel_elements,
        backend=args.backend,
        cache_vectors=args.cache,
    )


def log_settings(config: CovarianceConfig, num_brdfs: int, out_name: str):
    logger.info("Settings:")
    logger.info(f"\tNum BRDFs          = {num_brdfs}")
    logger.info(f"\tTaking natural log = {config.take_log}")
    logger.info(f"\tWhiten data        = {config.whiten_data}")
    logger.info(f"\tWhiten before log  = {config.whiten_before_log}")
    logger.info(f"\tNum color channels = {config.num_color_channels}")
    logger.info(f"\tOutput file        = {out_name}")
    logger.info(f"\tScaling covariance = {config.scale_covariances}")
    logger.info(f"\tVector dimension   = {config.dimension}")
    logger.info(f"\tBackend            = {config.backend.value}")


def main(argv=None, input_fn: Callable[[str], str] = input) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.files) < 2:
        parser.error("At least one input file and an output file name are required")

    setup_logging(args.verbose)

    try:
        config = config_from_args(args)
        check_float_format(args.float_format)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    *input_names, out_name = args.files
    logger.info(f'Writing to output file: "{out_name}".')
    if not args.yes and not confirm_output_name(out_name, input_fn):
        print("Aborted.", file=sys.stderr)
        return 1

    try:
        check_output_path(out_name)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_settings(config, len(input_names), out_name)

    try:
        engine = CovarianceEngine(config)
        result = engine.compute(Path(name) for name in input_names)
        result.save(out_name, float_format=args.float_format)
    except SampleReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except CovarianceError as e:
        print(f"Error computing covariance matrix: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1
    except OSError as e:
        print(f"Error writing output file: {e}", file=sys.stderr)
        return 1

    logger.info(f"All done. Results were written to: {out_name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
