import pytest

from domainset.services.domain_normalizer import DomainNormalizer
from domainset.services.settings import load_settings


@pytest.mark.parametrize(
    "token,expected",
    [
        ("example.com", "example.com"),
        (".example.com", "example.com"),
        ("Ads.Example.COM", "ads.example.com"),
        ("  www.example.co.uk  ", "www.example.co.uk"),
        ("_dmarc.example.com", "_dmarc.example.com"),
    ],
)
def test_normalize_accepts(normalizer, token, expected):
    assert normalizer.normalize(token) == expected


@pytest.mark.parametrize(
    "token",
    [
        "",
        "127.0.0.1",
        "::1",
        "[2001:db8::1]",
        "example.notatld",
        "http://example.com",
        "example.com/path",
        "example.com:443",
        "user@example.com",
        "-bad.example.com",
        "bad-.example.com",
        "bad..example.com",
        "..example.com",
        "exa mple.com",
        "com",
        "co.uk",
        "github.io",
        ".com.cn",
    ],
)
def test_normalize_rejects(normalizer, token):
    assert normalizer.normalize(token) is None


def test_apex(normalizer):
    assert normalizer.apex("a.b.example.com") == "example.com"
    assert normalizer.apex("www.example.co.uk") == "example.co.uk"
    assert normalizer.apex(".example.com") == "example.com"


def test_apex_rejects_bare_suffix(normalizer):
    assert normalizer.apex("com") is None
    assert normalizer.apex("co.uk") is None
    assert normalizer.apex("127.0.0.1") is None


def test_private_suffixes_are_respected(normalizer):
    # github.io sits in the private section of the PSL.
    assert normalizer.public_suffix("user.github.io") == "github.io"
    assert normalizer.apex("page.user.github.io") == "user.github.io"


def test_public_suffix_unlisted(normalizer):
    assert normalizer.public_suffix("gatracking.js") is None
    assert normalizer.public_suffix("example.com") == "com"


def test_from_settings_without_private_section(monkeypatch):
    monkeypatch.setenv("DOMAINSET_PSL_PRIVATE", "0")
    monkeypatch.delenv("DOMAINSET_PSL_URLS", raising=False)
    monkeypatch.delenv("DOMAINSET_PSL_CACHE_DIR", raising=False)
    n = DomainNormalizer.from_settings(load_settings())
    assert n.apex("page.user.github.io") == "github.io"
    assert n.normalize("user.github.io") == "user.github.io"
