#!/usr/bin/env python3
"""Main CLI entry point for all commands."""

import argparse
import sys
from pathlib import Path

from ..overlay.config import MERGING_PRESETS, VALIDATOR_PRESETS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Overlay CLI - turn OCR / vision-model boxes into drawable text regions",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--log-level",
        help="Override OVERLAY_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True
    )

    # Merge command (on-device OCR path)
    merge_parser = subparsers.add_parser(
        "merge",
        help="Merge pixel-space OCR detections and validate the resulting boxes"
    )
    merge_parser.add_argument(
        "input",
        type=Path,
        help="JSON file with image_width, image_height and detections"
    )
    merge_parser.add_argument(
        "--merging-preset",
        choices=sorted(MERGING_PRESETS),
        help="Merging preset (default: OVERLAY_MERGING_PRESET)"
    )
    merge_parser.add_argument(
        "--validator-preset",
        choices=sorted(VALIDATOR_PRESETS),
        help="Validator preset (default: OVERLAY_VALIDATOR_PRESET)"
    )
    merge_parser.add_argument(
        "--output",
        type=Path,
        help="Write regions JSON here instead of stdout"
    )

    # Validate command (cloud vision-model path)
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate 0-1000 vision-model boxes without merging"
    )
    validate_parser.add_argument(
        "input",
        type=Path,
        help="JSON file with screen_width, screen_height and results"
    )
    validate_parser.add_argument(
        "--validator-preset",
        choices=sorted(VALIDATOR_PRESETS),
        help="Validator preset (default: OVERLAY_VALIDATOR_PRESET)"
    )
    validate_parser.add_argument(
        "--output",
        type=Path,
        help="Write regions JSON here instead of stdout"
    )

    return parser


def main(argv=None) -> int:
    """Main CLI dispatcher."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from .regions import configure_logging, run_merge, run_validate
    configure_logging(args.log_level)

    # Route to appropriate command
    if args.command == "merge":
        return run_merge(
            args.input,
            output=args.output,
            merging_preset=args.merging_preset,
            validator_preset=args.validator_preset,
        )
    elif args.command == "validate":
        return run_validate(
            args.input,
            output=args.output,
            validator_preset=args.validator_preset,
        )
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
