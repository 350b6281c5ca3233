"""
Link classification and URL canonicalization for LinkScout.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from yarl import URL

from link_scout.crawler.models import HostMatch, Link
from link_scout.logger import get_logger

__all__ = ("LinkClassifier", "canonicalize", "HTTP_SCHEMES")

logger = get_logger(__name__)

HTTP_SCHEMES = frozenset(("http", "https"))
_DEFAULT_PORTS: Dict[str, int] = {"http": 80, "https": 443}


def _host_port(parts: SplitResult) -> Tuple[str, Optional[int]]:
    """Return the host as written (case preserved) and its explicit port.

    A default port for the scheme counts as no port. Raises ValueError for an
    invalid port.
    """
    hostport = parts.netloc.rpartition("@")[2]
    if hostport.startswith("["):
        host = hostport[: hostport.find("]") + 1]
    else:
        host = hostport.partition(":")[0]
    port = parts.port
    if port == _DEFAULT_PORTS.get(parts.scheme.lower()):
        port = None
    return host, port


def _wire_host(url: URL) -> str:
    """Host as aiohttp puts it on the wire: lower-case, IDNA-encoded."""
    return url.raw_host or ""


def canonicalize(url: str) -> str:
    """
    Canonical form used as the identity of a page.

    Built from the same :class:`yarl.URL` normalization aiohttp applies to a
    request, so two spellings of one request (``/café`` and ``/caf%C3%A9``,
    ``Bücher.de`` and ``xn--bcher-kva.de``) share one address. Credentials,
    default ports and the fragment are dropped; an empty path becomes ``/``.
    """
    url = url.strip()
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if not parts.netloc:
        return urlunsplit((scheme, "", parts.path, parts.query, ""))
    _, port = _host_port(parts)
    parsed = URL(url)
    host = _wire_host(parsed)
    if ":" in host:
        host = f"[{host}]"
    netloc = host if port is None else f"{host}:{port}"
    return urlunsplit((scheme, netloc, parsed.raw_path or "/", parsed.raw_query_string, ""))


class LinkClassifier:
    """Turns raw ``href`` values into classified :class:`Link` records."""

    def __init__(
        self,
        seed_url: str,
        host_match: HostMatch = HostMatch.IGNORE_CASE,
        match_port: bool = True,
    ) -> None:
        parts = urlsplit(str(seed_url).strip())
        if parts.scheme.lower() not in HTTP_SCHEMES or not parts.hostname:
            raise ValueError(f"not an absolute http(s) URL: {seed_url!r}")
        self.seed_url = urlunsplit(parts)
        self.host_match = HostMatch(host_match)
        self.match_port = match_port
        self._seed_host, self._seed_port = _host_port(parts)
        self._seed_wire_host = _wire_host(URL(self.seed_url))

    @classmethod
    def from_config(cls, config) -> LinkClassifier:
        # exact host matching needs the seed as typed, not pydantic's normalized copy
        seed = config.seed_text or str(config.seed_url)
        return cls(seed, host_match=config.host_match, match_port=config.match_port)

    def classify(self, raw: str, source: Optional[str], base: Optional[str] = None) -> Link:
        """Build a Link for *raw* found on the page at *source*.

        Relative references resolve against *base* (the final URL after
        redirects) when given, else against *source*.
        """
        link = Link(source=source, raw=raw)
        href = raw.strip()
        if not href:
            link.malformed = True
            return link
        if href.startswith("#"):
            link.internal = True
            link.fragment = True
            return link
        try:
            absolute = urljoin(base or source or self.seed_url, href)
            # a relative href inherits the host of the page it was found on
            link.internal = self.is_internal(absolute, as_written=bool(urlsplit(href).netloc))
            link.address = canonicalize(absolute)
        except ValueError as exc:
            logger.debug("Unparsable link %r on %s: %s", raw, source, exc)
            link.malformed = True
            link.internal = False
            link.address = None
        return link

    def is_internal(self, url: str, as_written: bool = True) -> bool:
        """Decide whether the absolute *url* belongs to the crawled site.

        Under ``HostMatch.EXACT`` the host is compared exactly as written in
        *url* and the seed, unless *as_written* is false (the host came from
        an already crawled page, so only its wire form is known). All other
        comparisons use the wire form of both hosts.

        Raises ValueError when *url* cannot be parsed.
        """
        parts = urlsplit(url)
        host, port = _host_port(parts)
        if parts.scheme.lower() not in HTTP_SCHEMES or not host:
            return False
        if self.match_port and port != self._seed_port:
            return False
        if self.host_match is HostMatch.EXACT and as_written:
            return host == self._seed_host
        host, seed = _wire_host(URL(url)), self._seed_wire_host
        if self.host_match is HostMatch.SUBDOMAINS:
            return host == seed or host.endswith("." + seed)
        return host == seed
