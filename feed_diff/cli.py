"""Command-line interface for the feed_diff application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, parse_app_config, validate_choice
from .diffing import MISSING_DATE_POLICIES
from .errors import FeedDiffError
from .models import ReportMetadata
from .renderers import OUTPUT_FORMATS
from .runner import RunConfig, execute

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description=(
            "Compare a remote RSS feed with the local snapshot and report "
            "new or changed entries."
        )
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional path to a configuration XML file.",
    )
    parser.add_argument("--url", default=None, help="RSS feed url.")
    parser.add_argument(
        "--path",
        default=None,
        help="Path to the local feed snapshot to diff against.",
    )
    parser.add_argument(
        "--ca-cert",
        default=None,
        help="PEM certificate authority to trust in addition to the defaults.",
    )
    parser.add_argument(
        "--format",
        default=None,
        choices=OUTPUT_FORMATS,
        help="Report format. Overrides config.",
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        default=None,
        help="Write the report to PATH instead of stdout.",
    )
    parser.add_argument(
        "--missing-dates",
        default=None,
        choices=MISSING_DATE_POLICIES,
        help="How to treat entries without a publish date. Overrides config.",
    )

    # Overrides for logging/debugging
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def build_run_config(app_config: AppConfig, args: argparse.Namespace) -> RunConfig:
    """Merge CLI overrides into the loaded configuration."""
    missing_dates = args.missing_dates or app_config.missing_dates
    output_format = args.format or app_config.output.format
    return RunConfig(
        url=args.url or app_config.url,
        snapshot_path=args.path or app_config.snapshot_path,
        ca_cert_path=args.ca_cert or app_config.ca_cert_path,
        timeout=app_config.timeout,
        missing_dates=validate_choice(
            "missing-dates policy", missing_dates, MISSING_DATE_POLICIES
        ),
        output_format=validate_choice("output format", output_format, OUTPUT_FORMATS),
        output_file=args.output or app_config.output.file,
        link_suffixes=list(app_config.report.link_suffixes),
        metadata=ReportMetadata(
            title_template=app_config.report.title,
            author=app_config.report.author,
            categories=list(app_config.report.categories),
        ),
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # Determine logging settings (CLI overrides Config)
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file

        configure_logging(log_level, log_file)

        config = build_run_config(app_config, args)
        logger.info(
            "Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(config))
        )

        result = execute(config)
    except ValueError as exc:
        parser.error(str(exc))
    except FeedDiffError as exc:
        logger.error("%s failed: %s", exc.stage, exc)
        return 1
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    if result.report is None:
        logger.info("%s", result.output_text)
    if not config.output_file:
        print(result.output_text)
    return 0
