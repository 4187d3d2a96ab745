"""Configuration loading for feed_diff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET

from .diffing import MISSING_DATE_POLICIES
from .renderers import OUTPUT_FORMATS

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://opendata.citywindsor.ca/RSS"
DEFAULT_SNAPSHOT_PATH = "./feeds/opendata.xml"
DEFAULT_TITLE_TEMPLATE = "City of Windsor Open Data updates for {date:%Y-%m-%d}"


@dataclass
class ReportConfig:
    title: str = DEFAULT_TITLE_TEMPLATE
    author: str = "feed-diff"
    categories: List[str] = field(default_factory=list)
    link_suffixes: List[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    format: str = "json"
    file: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    url: str = DEFAULT_URL
    snapshot_path: str = DEFAULT_SNAPSHOT_PATH
    ca_cert_path: Optional[str] = None
    timeout: float = 30.0
    missing_dates: str = "changed"
    report: ReportConfig = field(default_factory=ReportConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _text(node: ET.Element, tag: str) -> Optional[str]:
    value = node.findtext(tag)
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_choice(name: str, value: str, choices) -> str:
    """Return ``value`` if it is one of ``choices``, else raise ValueError."""
    if value not in choices:
        raise ValueError(
            f"Unsupported {name}: {value} (expected one of {', '.join(choices)})"
        )
    return value


def parse_app_config(path: str) -> AppConfig:
    """Parse the application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    try:
        root = ET.parse(config_path).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"Config file {path} is not valid XML: {exc}") from exc

    config = AppConfig()

    config.url = _text(root, "url") or DEFAULT_URL

    snapshot = _text(root, "snapshot")
    if snapshot:
        config.snapshot_path = _resolve_path(config_path, snapshot)

    ca_cert = _text(root, "ca-cert")
    if ca_cert:
        config.ca_cert_path = _resolve_path(config_path, ca_cert)

    timeout = _text(root, "timeout")
    if timeout:
        config.timeout = float(timeout)
        if config.timeout <= 0:
            raise ValueError("<timeout> must be positive.")

    missing_dates = _text(root, "missing-dates")
    if missing_dates:
        config.missing_dates = validate_choice(
            "missing-dates policy", missing_dates, MISSING_DATE_POLICIES
        )

    # Report
    report_node = root.find("report")
    if report_node is not None:
        config.report.title = _text(report_node, "title") or DEFAULT_TITLE_TEMPLATE
        config.report.author = _text(report_node, "author") or "feed-diff"
        config.report.categories = [
            node.text.strip()
            for node in report_node.findall("category")
            if node.text and node.text.strip()
        ]
        config.report.link_suffixes = [
            node.text.strip()
            for node in report_node.findall("link-suffix")
            if node.text and node.text.strip()
        ]

    # Output
    output_node = root.find("output")
    if output_node is not None:
        config.output.format = validate_choice(
            "output format", _text(output_node, "format") or "json", OUTPUT_FORMATS
        )
        output_file = _text(output_node, "file")
        if output_file:
            config.output.file = _resolve_path(config_path, output_file)

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = _text(log_node, "level") or "INFO"
        log_file = _text(log_node, "file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file)

    logger.debug("Parsed configuration: %s", config)
    return config
