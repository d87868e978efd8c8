# src/pagefacts/utils/url_utils.py
import logging
import posixpath
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class UrlUtils:
    """
    Static helpers resolving document URLs against a page's base URL and
    classifying them as internal or external.

    Hosts are compared exactly as written: no case folding and no 'www.'
    normalization, so 'www.Example.com' and 'example.com' are different hosts.
    """

    @staticmethod
    def _authority(netloc: str) -> str:
        """Strips user info from a netloc (keeps the port)."""
        return netloc.rpartition("@")[2]

    @staticmethod
    def get_host(url: str) -> str:
        """
        Returns the host of a URL without user info or port, case preserved.
        Returns '' when the URL has no extractable host.
        """
        if not url:
            return ""
        try:
            netloc = urlparse(url).netloc
        except ValueError:
            logger.debug("Could not parse URL while extracting host: %s", url)
            return ""

        authority = UrlUtils._authority(netloc)
        if authority.startswith("["):
            # IPv6 literal, e.g. [::1]:8080
            end = authority.find("]")
            return authority[:end + 1] if end != -1 else authority
        return authority.partition(":")[0]

    @staticmethod
    def has_scheme(url: str) -> bool:
        try:
            return bool(urlparse(url).scheme)
        except ValueError:
            return False

    @staticmethod
    def resolve(url: str, base_url: str) -> str:
        """
        Resolves a (possibly relative) URL against base_url.

        Priority: absolute URLs are returned unchanged; protocol-relative URLs
        get the base scheme; root-relative URLs get the base scheme and
        authority; anything else is appended to the directory of the base path.
        Empty input resolves to ''.
        """
        if not url:
            return ""

        if UrlUtils.has_scheme(url):
            return url

        try:
            base = urlparse(base_url or "")
        except ValueError:
            logger.debug("Invalid base URL '%s'; resolving against an empty base.", base_url)
            base = urlparse("")

        scheme = base.scheme or "https"
        authority = UrlUtils._authority(base.netloc)
        base_path = base.path or "/"

        if url.startswith("//"):
            return f"{scheme}:{url}"

        if url.startswith("/"):
            return f"{scheme}://{authority}{url}"

        directory = posixpath.dirname(base_path).rstrip("/")
        return f"{scheme}://{authority}{directory}/{url}"

    @staticmethod
    def is_external(url: str, base_host: str) -> bool:
        """
        True iff the URL has a host and that host differs from base_host.
        URLs without a host (relative, mailto:, javascript:) count as internal.
        """
        host = UrlUtils.get_host(url)
        return bool(host) and host != base_host
