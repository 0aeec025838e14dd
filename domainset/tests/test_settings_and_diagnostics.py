import logging

from domainset.services.diagnostics import Diagnostics
from domainset.services.directive import Directive, Polarity, Scope, block, split_scope
from domainset.services.errors import clean_text
from domainset.services.settings import load_settings


def test_load_settings_defaults(monkeypatch):
    for name in (
        "DOMAINSET_PSL_PRIVATE",
        "DOMAINSET_PSL_CACHE_DIR",
        "DOMAINSET_PSL_URLS",
        "DOMAINSET_DEBUG_DOMAIN",
        "DOMAINSET_DIAGNOSTIC_MAX_LEN",
    ):
        monkeypatch.delenv(name, raising=False)
    st = load_settings()
    assert st.psl_include_private is True
    assert st.psl_cache_dir == ""
    assert st.psl_urls == ()
    assert st.debug_domain == ""
    assert st.diagnostic_max_len == 200


def test_load_settings_from_env(monkeypatch):
    monkeypatch.setenv("DOMAINSET_PSL_PRIVATE", "no")
    monkeypatch.setenv("DOMAINSET_PSL_CACHE_DIR", " /tmp/psl ")
    monkeypatch.setenv("DOMAINSET_PSL_URLS", "https://a.example/psl.dat  https://b.example/psl.dat")
    monkeypatch.setenv("DOMAINSET_DEBUG_DOMAIN", "Example.COM")
    monkeypatch.setenv("DOMAINSET_DIAGNOSTIC_MAX_LEN", "50")
    st = load_settings()
    assert st.psl_include_private is False
    assert st.psl_cache_dir == "/tmp/psl"
    assert st.psl_urls == ("https://a.example/psl.dat", "https://b.example/psl.dat")
    assert st.debug_domain == "example.com"
    assert st.diagnostic_max_len == 50


def test_load_settings_bad_int_falls_back(monkeypatch):
    monkeypatch.setenv("DOMAINSET_DIAGNOSTIC_MAX_LEN", "lots")
    assert load_settings().diagnostic_max_len == 200
    monkeypatch.setenv("DOMAINSET_DIAGNOSTIC_MAX_LEN", "-5")
    assert load_settings().diagnostic_max_len == 200


def test_clean_text_strips_newlines_and_bounds_length():
    s = "hello\nworld\r\n\t\x00!" * 5
    out = clean_text(s, max_len=20)
    assert "\n" not in out
    assert "\r" not in out
    assert "\x00" not in out
    assert len(out) <= 20


def test_directive_domain_round_trip():
    for domain in (".ads.example.com", "ads.example.com"):
        d = Directive.from_domain(domain, Polarity.BLOCK)
        assert d.to_domain() == domain
    assert split_scope(".example.com") == ("example.com", Scope.SUBTREE)
    assert split_scope("example.com") == ("example.com", Scope.EXACT)


def test_diagnostics_records_every_rejection_but_warns_once(caplog):
    diags = Diagnostics("list-a", max_len=30)
    with caplog.at_level(logging.WARNING, logger="domainset.services.diagnostics"):
        diags.reject("can not parse", "E0010", "first\nline")
        diags.reject("can not parse", "E0010", "second " + "x" * 100)
        diags.reject("leading-dot form", "E0006", "cookielaw.js")

    assert diags.counts() == {"E0006": 1, "E0010": 2}
    assert [r.source for r in diags.records] == ["list-a"] * 3
    assert diags.records[0].text == "first line"
    assert len(diags.records[1].text) <= 30
    assert diags.first("E0006").text == "cookielaw.js"
    assert diags.first("E0001") is None

    warned = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warned) == 2


def test_diagnostics_keep_exact_counts_but_bounded_records():
    diags = Diagnostics("list-a", max_records_per_code=2)
    for i in range(5):
        diags.reject("can not parse", "E0010", f"line {i}")
    diags.reject("leading-dot form", "E0006", "cookielaw.js")

    assert diags.counts() == {"E0006": 1, "E0010": 5}
    assert [r.text for r in diags.records] == ["line 0", "line 1", "cookielaw.js"]


def test_diagnostics_are_per_instance():
    a = Diagnostics("a")
    b = Diagnostics("b")
    a.reject("can not parse", "E0010", "x")
    assert b.records == []
    assert b.counts() == {}


def test_trace_only_for_matching_hostnames(caplog):
    diags = Diagnostics("list-a", debug_domain="example.com")
    with caplog.at_level(logging.WARNING, logger="domainset.services.diagnostics"):
        diags.trace(block("ads.example.org", True))
        assert diags.found_debug_domain is False
        diags.trace(block("ads.example.com", True))
        diags.trace(block("cdn.example.com", False))
    assert diags.found_debug_domain is True
    assert len([r for r in caplog.records if "example.com" in r.getMessage()]) == 1
