#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Dict, Iterator, List, Optional, Set

from domainset.services.diagnostics import Diagnostics
from domainset.services.domain_dedupe import dedupe
from domainset.services.domain_normalizer import DomainNormalizer
from domainset.services.domain_sort import sort_domains
from domainset.services.list_sources import (
    process_domain_lists,
    process_filter_rules,
    process_hosts,
    process_line,
    remove_allowlisted,
)
from domainset.services.settings import load_settings


logger = logging.getLogger("domainset.compile")


def _read_lines(path: str) -> Iterator[str]:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for ln in f:
            yield ln.rstrip("\r\n")


def _write_lines(path: str, items: List[str]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for s in items:
            f.write(s)
            f.write("\n")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Compile block/allow lists into sorted, deduplicated domain sets")
    ap.add_argument("--filter", action="append", default=[], help="Adblock-style filter list (repeatable)")
    ap.add_argument("--hosts", action="append", default=[], help="hosts-file list (repeatable)")
    ap.add_argument(
        "--hosts-subdomains",
        action="store_true",
        help="Treat hosts-file entries as covering all subdomains",
    )
    ap.add_argument("--domains", action="append", default=[], help="Plain domain list (repeatable)")
    ap.add_argument("--allowlist", action="append", default=[], help="Domains carved out of the block set (repeatable)")
    ap.add_argument("--out", default="out", help="Output directory")
    ap.add_argument("--debug-domain", default=None, help="Trace every rule whose hostname contains this text")
    ap.add_argument("-v", "--verbose", action="store_true")
    ns = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings()
    debug_domain = ns.debug_domain if ns.debug_domain is not None else settings.debug_domain
    normalizer = DomainNormalizer.from_settings(settings)

    allow: Set[str] = set()
    block: Set[str] = set()
    per_source: Dict[str, Dict[str, object]] = {}
    found_debug = False

    def _diags(path: str) -> Diagnostics:
        return Diagnostics(path, debug_domain=debug_domain, max_len=settings.diagnostic_max_len)

    try:
        for path in ns.filter:
            d = _diags(path)
            res = process_filter_rules(_read_lines(path), normalizer, source=path, diagnostics=d)
            allow |= res.allow
            block |= res.block
            found_debug = found_debug or res.found_debug_domain
            per_source[path] = {"allow": len(res.allow), "block": len(res.block), "diagnostics": d.counts()}

        for path in ns.hosts:
            d = _diags(path)
            got = process_hosts(
                _read_lines(path),
                normalizer,
                include_all_subdomain=bool(ns.hosts_subdomains),
                source=path,
                diagnostics=d,
            )
            block |= got
            found_debug = found_debug or d.found_debug_domain
            per_source[path] = {"block": len(got)}

        for path in ns.domains:
            d = _diags(path)
            got = process_domain_lists(_read_lines(path), source=path, diagnostics=d)
            block |= got
            found_debug = found_debug or d.found_debug_domain
            per_source[path] = {"block": len(got)}

        allowlist: List[str] = []
        for path in ns.allowlist:
            allowlist.extend(s for s in (process_line(x) for x in _read_lines(path)) if s)
    except OSError as e:
        print(f"[domainset_compile] failed reading input: {e}", file=sys.stderr)
        return 2

    if allowlist:
        block = remove_allowlisted(block, allowlist)

    block_out = sort_domains(dedupe(block), normalizer)
    allow_out = sort_domains(dedupe(allow), normalizer)

    out_dir = str(ns.out)
    _write_lines(os.path.join(out_dir, "domains_block.txt"), block_out)
    _write_lines(os.path.join(out_dir, "domains_allow.txt"), allow_out)

    report = {
        "allow": len(allow_out),
        "block": len(block_out),
        "allow_raw": len(allow),
        "block_raw": len(block),
        "sources": per_source,
        "found_debug_domain": found_debug,
    }
    with open(os.path.join(out_dir, "report.json"), "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, sort_keys=True)
        f.write("\n")

    if debug_domain and not found_debug:
        logger.warning("debug domain %r was not found in any source", debug_domain)

    print(
        f"[domainset_compile] compiled: allow={len(allow_out)} block={len(block_out)} sources={len(per_source)}",
        flush=True,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
