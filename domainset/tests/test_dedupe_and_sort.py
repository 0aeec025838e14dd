import random

import pytest

from domainset.services.domain_dedupe import dedupe
from domainset.services.domain_sort import compare_domains, domain_comparator, sort_domains


SAMPLE = [
    ".example.com",
    "ads.example.com",
    "example.com",
    ".a.example.com",
    "x.y.example.com",
    "example.org",
    "cdn.example.org",
    ".tracker.example.org",
    "deep.tracker.example.org",
    ".example.co.uk",
    "www.example.co.uk",
    "stats.other.net",
    "stats.other.net",
]


def test_dedupe_drops_covered_entries():
    assert dedupe([".example.com", "ads.example.com", "example.com"]) == [".example.com"]


def test_dedupe_keeps_exact_siblings_and_removes_duplicates():
    assert sorted(dedupe(["a.example.com", "b.example.com", "a.example.com"])) == ["a.example.com", "b.example.com"]


def test_dedupe_exact_does_not_cover_subdomains():
    out = dedupe(["example.com", "ads.example.com"])
    assert sorted(out) == ["ads.example.com", "example.com"]


def test_dedupe_sample():
    assert sorted(dedupe(SAMPLE)) == sorted(
        [
            ".example.com",
            "example.org",
            "cdn.example.org",
            ".tracker.example.org",
            ".example.co.uk",
            "stats.other.net",
        ]
    )


def test_dedupe_is_idempotent():
    once = dedupe(SAMPLE)
    assert sorted(dedupe(once)) == sorted(once)


def test_dedupe_coverage_invariant():
    out = set(dedupe(SAMPLE))
    for d in out:
        host = d.lstrip(".")
        for other in out:
            if other == d or not other.startswith("."):
                continue
            # No remaining subtree entry may be a strict ancestor of d.
            assert not host.endswith(other), (d, other)
            if not d.startswith("."):
                assert host != other[1:], (d, other)


def test_dedupe_keeps_polarities_apart():
    allow = dedupe([".example.com"])
    block = dedupe(["ads.example.com"])
    assert block == ["ads.example.com"]
    assert allow == [".example.com"]


def test_sort_groups_by_apex(normalizer):
    out = sort_domains(["b.example.com", "example.com", "a.example.org"], normalizer)
    assert out == ["example.com", "b.example.com", "a.example.org"]


def test_sort_orders_within_group_by_reversed_labels(normalizer):
    items = ["z.a.example.com", "b.example.com", "a.example.com", ".example.com", "example.com", "y.b.example.com"]
    out = sort_domains(items, normalizer)
    assert out == [
        "example.com",
        ".example.com",
        "a.example.com",
        "z.a.example.com",
        "b.example.com",
        "y.b.example.com",
    ]


def test_sort_is_stable_under_shuffle(normalizer):
    expected = sort_domains(SAMPLE, normalizer)
    rnd = random.Random(1234)
    for _ in range(20):
        items = list(SAMPLE)
        rnd.shuffle(items)
        assert sort_domains(items, normalizer) == expected


def test_sort_grouping_invariant(normalizer):
    out = sort_domains(dedupe(SAMPLE), normalizer)
    apexes = [normalizer.apex(d) for d in out]
    seen = []
    for a in apexes:
        if seen and seen[-1] == a:
            continue
        assert a not in seen, apexes
        seen.append(a)
    assert seen == sorted(seen)


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("example.com", "example.com", 0),
        ("example.com", "a.example.com", -1),
        ("a.example.org", "b.example.com", 1),
        ("example.com", ".example.com", -1),
    ],
)
def test_compare_domains(normalizer, a, b, expected):
    assert compare_domains(a, b, normalizer) == expected


def test_domain_comparator(normalizer):
    out = sorted(["a.example.org", "example.com"], key=domain_comparator(normalizer))
    assert out == ["example.com", "a.example.org"]
