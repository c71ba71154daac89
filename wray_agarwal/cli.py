"""
Command-line entry point.

    python -m wray_agarwal case.yaml [--steps N] [--model TYPE] [--log-level L]
"""

import argparse
import sys
from typing import List, Optional

from loguru import logger

from wray_agarwal.config import load_yaml, apply_cli_overrides
from wray_agarwal.errors import ConfigurationError
from wray_agarwal.models import available_models
from wray_agarwal.solvers import ClosureCase
from wray_agarwal.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wray_agarwal",
        description="Advance a Wray-Agarwal turbulence closure on a channel case")
    parser.add_argument("case", help="Case configuration (YAML)")
    parser.add_argument("--steps", type=int, help="Number of closure steps")
    parser.add_argument("--model", choices=available_models(), help="Override the model type")
    parser.add_argument("--delta-t", dest="delta_t", type=float, help="Time step")
    parser.add_argument("--ni", type=int, help="Streamwise cells")
    parser.add_argument("--nj", type=int, help="Wall-normal cells")
    parser.add_argument("--output-dir", dest="output_dir", help="Output directory")
    parser.add_argument("--case-name", dest="case_name", help="Output file stem")
    parser.add_argument("--log-level", dest="log_level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or "INFO", show_time=False)

    try:
        config = apply_cli_overrides(load_yaml(args.case), args)
        if config.log_level and not args.log_level:
            setup_logging(config.log_level, show_time=False)
        case = ClosureCase(config, properties_path=args.case)
        case.run()
    except (ConfigurationError, FileNotFoundError) as err:
        logger.error(f"{err}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
