from __future__ import annotations

import pytest

from link_scout.config import CrawlerConfig
from link_scout.crawler.classifier import LinkClassifier, canonicalize
from link_scout.crawler.models import HostMatch, LinkKind

SOURCE = "http://example.com/docs/index.html"


@pytest.mark.parametrize("raw", ["", "   ", "\t\n"])
def test_empty_href_is_malformed(classifier, raw):
    link = classifier.classify(raw, SOURCE)
    assert link.malformed
    assert link.address is None
    assert link.kind is LinkKind.MALFORMED
    assert not link.followable


@pytest.mark.parametrize("raw", ["#", "#top", "  #section-2 "])
def test_fragment_only_href(classifier, raw):
    link = classifier.classify(raw, SOURCE)
    assert link.internal and link.fragment
    assert not link.malformed
    assert link.address is None
    assert link.kind is LinkKind.FRAGMENT
    assert not link.followable


@pytest.mark.parametrize("raw", ["http://[::1", "http://example.com:99999/", "http://example.com:port/"])
def test_unparsable_href_is_malformed(classifier, raw):
    link = classifier.classify(raw, SOURCE)
    assert link.malformed
    assert not link.internal
    assert link.address is None
    assert not link.followable


@pytest.mark.parametrize(
    "raw,address",
    [
        ("/about", "http://example.com/about"),
        ("guide.html", "http://example.com/docs/guide.html"),
        ("../img/", "http://example.com/img/"),
        ("?page=2", "http://example.com/docs/index.html?page=2"),
        ("/about#team", "http://example.com/about"),
        ("//example.com/x", "http://example.com/x"),
        ("https://example.com/secure", "https://example.com/secure"),
    ],
)
def test_internal_links_resolve_against_source(classifier, raw, address):
    link = classifier.classify(raw, SOURCE)
    assert link.internal
    assert link.kind is LinkKind.INTERNAL
    assert link.address == address
    assert link.source == SOURCE
    assert link.raw == raw
    assert link.followable


def test_base_overrides_source_for_resolution(classifier):
    link = classifier.classify("next", SOURCE, base="http://example.com/moved/")
    assert link.address == "http://example.com/moved/next"
    assert link.source == SOURCE


@pytest.mark.parametrize(
    "raw",
    ["https://other.com/x", "mailto:team@example.com", "javascript:void(0)", "ftp://example.com/file"],
)
def test_external_links(classifier, raw):
    link = classifier.classify(raw, SOURCE)
    assert not link.internal
    assert not link.malformed
    assert link.kind is LinkKind.EXTERNAL
    assert not link.followable


def test_host_comparison_ignores_case_by_default(classifier):
    assert classifier.classify("http://EXAMPLE.com/x", SOURCE).internal


def test_exact_host_comparison_is_case_sensitive():
    exact = LinkClassifier("http://example.com/", host_match=HostMatch.EXACT)
    assert exact.classify("http://example.com/x", SOURCE).internal
    assert not exact.classify("http://EXAMPLE.com/x", SOURCE).internal


def test_subdomains_policy():
    default = LinkClassifier("http://example.com/")
    subdomains = LinkClassifier("http://example.com/", host_match="subdomains")
    assert not default.classify("http://blog.example.com/", SOURCE).internal
    assert subdomains.classify("http://blog.example.com/", SOURCE).internal
    assert not subdomains.classify("http://notexample.com/", SOURCE).internal


def test_port_policy():
    strict = LinkClassifier("http://example.com/")
    loose = LinkClassifier("http://example.com/", match_port=False)
    assert not strict.classify("http://example.com:8080/", SOURCE).internal
    assert loose.classify("http://example.com:8080/", SOURCE).internal
    assert strict.classify("http://example.com:80/", SOURCE).internal


def test_idn_hosts_compare_in_punycode():
    raw_seed = LinkClassifier("http://bücher.de/")
    from_config = LinkClassifier.from_config(CrawlerConfig(seed_url="http://bücher.de/"))
    for classifier in (raw_seed, from_config):
        unicode_link = classifier.classify("http://bücher.de/x", "http://xn--bcher-kva.de/")
        punycode_link = classifier.classify("http://xn--bcher-kva.de/y", "http://xn--bcher-kva.de/")
        assert unicode_link.internal and punycode_link.internal
        assert unicode_link.address == "http://xn--bcher-kva.de/x"


def test_exact_host_comparison_uses_seed_as_typed():
    config = CrawlerConfig(seed_url="http://Example.COM/", host_match="exact")
    exact = LinkClassifier.from_config(config)
    page = canonicalize(str(config.seed_url))
    assert exact.classify("http://Example.COM/x", page).internal
    assert not exact.classify("http://example.com/x", page).internal
    # relative links inherit the host of the page they were found on
    relative = exact.classify("/y", page)
    assert relative.internal
    assert relative.address == "http://example.com/y"


@pytest.mark.parametrize("seed", ["example.com", "ftp://example.com/", "http://", ""])
def test_invalid_seed_rejected(seed):
    with pytest.raises(ValueError):
        LinkClassifier(seed)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("HTTP://Example.COM", "http://example.com/"),
        ("http://example.com:80/a", "http://example.com/a"),
        ("https://example.com:443/a", "https://example.com/a"),
        ("http://example.com:8080/a", "http://example.com:8080/a"),
        ("http://user:pw@example.com/a", "http://example.com/a"),
        ("http://example.com/a?b=1&a=2#frag", "http://example.com/a?b=1&a=2"),
        ("http://example.com/Path/", "http://example.com/Path/"),
        ("http://example.com/café", "http://example.com/caf%C3%A9"),
        ("http://example.com/caf%C3%A9", "http://example.com/caf%C3%A9"),
        ("http://example.com/a b", "http://example.com/a%20b"),
        ("http://bücher.de/x", "http://xn--bcher-kva.de/x"),
        ("http://[::1]:8080/a", "http://[::1]:8080/a"),
    ],
)
def test_canonicalize(url, expected):
    assert canonicalize(url) == expected
