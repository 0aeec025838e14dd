from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple


_DEFAULT_DIAGNOSTIC_MAX_LEN = 200


def _env_flag(name: str, default: str) -> bool:
    v = (os.environ.get(name) or default).strip().lower()
    return v in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        v = int((os.environ.get(name) or str(default)).strip())
    except ValueError:
        return default
    return v if v > 0 else default


@dataclass(frozen=True)
class BuildSettings:
    psl_include_private: bool
    psl_cache_dir: str
    psl_urls: Tuple[str, ...]
    debug_domain: str
    diagnostic_max_len: int


def load_settings() -> BuildSettings:
    """Read build settings from the environment.

    An empty DOMAINSET_PSL_URLS keeps tldextract on its bundled snapshot,
    so building never touches the network unless asked to.
    """
    urls = tuple(u for u in (os.environ.get("DOMAINSET_PSL_URLS") or "").split() if u)
    return BuildSettings(
        psl_include_private=_env_flag("DOMAINSET_PSL_PRIVATE", "1"),
        psl_cache_dir=(os.environ.get("DOMAINSET_PSL_CACHE_DIR") or "").strip(),
        psl_urls=urls,
        debug_domain=(os.environ.get("DOMAINSET_DEBUG_DOMAIN") or "").strip().lower(),
        diagnostic_max_len=_env_int("DOMAINSET_DIAGNOSTIC_MAX_LEN", _DEFAULT_DIAGNOSTIC_MAX_LEN),
    )
