"""HTTP transport for retrieving the remote feed."""

from __future__ import annotations

import logging
import re
import ssl
from pathlib import Path
from typing import Optional

import certifi
import requests
from requests.adapters import HTTPAdapter

from .errors import ConfigError, NetworkError

logger = logging.getLogger(__name__)

PEM_CERT_RE = re.compile(
    r"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----", re.DOTALL
)
USER_AGENT = "feed-diff/0.1 (+https://opendata.citywindsor.ca)"


class TrustedCAAdapter(HTTPAdapter):
    """HTTPS adapter that verifies peers against a custom SSL context."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs) -> None:
        self._ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self._ssl_context
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args, **kwargs):
        kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def build_ssl_context(ca_cert_path: Optional[str] = None) -> ssl.SSLContext:
    """Return a context trusting the certifi bundle plus an optional extra CA."""
    context = ssl.create_default_context(cafile=certifi.where())
    if not ca_cert_path:
        return context

    location = Path(ca_cert_path)
    try:
        pem = location.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(
            f"Unable to read CA certificate {location}: {exc}"
        ) from exc

    certificates = PEM_CERT_RE.findall(pem)
    if not certificates:
        raise ConfigError(f"No PEM certificate found in {location}")

    try:
        context.load_verify_locations(cadata="\n".join(certificates))
    except (ssl.SSLError, ValueError) as exc:
        raise ConfigError(
            f"Unable to append CA certificate {location} to trust store: {exc}"
        ) from exc

    logger.debug("Appended CA certificate from %s to trust store", location)
    return context


def build_session(ca_cert_path: Optional[str] = None) -> requests.Session:
    """Create a session whose HTTPS connections trust the configured CA."""
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    session.mount("https://", TrustedCAAdapter(build_ssl_context(ca_cert_path)))
    return session


def fetch_feed(session: requests.Session, url: str, timeout: float = 30.0) -> bytes:
    """Download the raw feed bytes from ``url``."""
    logger.info("Fetching remote feed %s", url)
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise NetworkError(f"Unable to get remote feed {url}: {exc}") from exc

    content = response.content
    logger.info("Fetched %d bytes from %s", len(content), url)
    return content
