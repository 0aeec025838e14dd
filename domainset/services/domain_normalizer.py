from __future__ import annotations

import ipaddress
import logging
import re
from functools import lru_cache
from typing import Optional, Tuple

import tldextract

from domainset.services.settings import BuildSettings, load_settings


logger = logging.getLogger(__name__)


# Labels may carry '_' (common in tracker lists) but never start or end with '-'.
_LABEL = r"[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?"
_HOST_RE = re.compile(r"^(?=.{1,253}$)" + _LABEL + r"(?:\." + _LABEL + r")*$")


def _is_ip_literal(s: str) -> bool:
    t = s
    if t.startswith("[") and t.endswith("]"):
        t = t[1:-1]
    try:
        ipaddress.ip_address(t)
        return True
    except ValueError:
        return False


class DomainNormalizer:
    """Public-suffix aware hostname validation.

    Wraps a tldextract extractor. The extractor is configured once and only
    ever read afterwards, so one normalizer may be shared between threads.
    """

    def __init__(self, extractor: Optional[tldextract.TLDExtract] = None, *, cache_size: int = 65536) -> None:
        if extractor is None:
            extractor = tldextract.TLDExtract(
                cache_dir=None,
                suffix_list_urls=(),
                include_psl_private_domains=True,
            )
        self._extractor = extractor
        self._split = lru_cache(maxsize=cache_size)(self._split_uncached)

    @classmethod
    def from_settings(cls, settings: Optional[BuildSettings] = None) -> "DomainNormalizer":
        st = settings or load_settings()
        extractor = tldextract.TLDExtract(
            cache_dir=st.psl_cache_dir or None,
            suffix_list_urls=st.psl_urls,
            fallback_to_snapshot=True,
            include_psl_private_domains=st.psl_include_private,
        )
        if st.psl_urls:
            logger.info("Public suffix list: %d remote source(s), cache=%s", len(st.psl_urls), st.psl_cache_dir or "-")
        return cls(extractor)

    def _split_uncached(self, host: str) -> Tuple[str, str]:
        # (registrable label, public suffix); suffix is '' when nothing in the PSL matches.
        ext = self._extractor(host)
        return (ext.domain or ""), (ext.suffix or "")

    def _clean(self, token: str) -> Optional[str]:
        s = (token or "").strip().lower()
        if s.startswith("."):
            s = s[1:]
        if not s or _is_ip_literal(s):
            return None
        if _HOST_RE.match(s) is None:
            return None
        return s

    def normalize(self, token: str) -> Optional[str]:
        """Return the canonical hostname for token, or None.

        Only bare hostnames with a registrable label in front of a listed
        suffix are accepted: a scheme, port, path or userinfo makes the token
        invalid rather than being cut away. A single leading dot is dropped.
        """
        s = self._clean(token)
        if s is None:
            return None
        domain, suffix = self._split(s)
        # A bare public suffix (com, co.uk, github.io) is not a hostname.
        if not domain or not suffix:
            return None
        return s

    def public_suffix(self, host: str) -> Optional[str]:
        s = self._clean(host)
        if s is None:
            return None
        _, suffix = self._split(s)
        return suffix or None

    def apex(self, host: str) -> Optional[str]:
        """Collapse host to its registrable domain; None for bare public suffixes."""
        s = self._clean(host)
        if s is None:
            return None
        domain, suffix = self._split(s)
        if not domain or not suffix:
            return None
        return f"{domain}.{suffix}"
