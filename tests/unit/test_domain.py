from __future__ import annotations

import pytest

from quince.extractor.domain import link_target, link_targets, normalize_address, normalize_host


@pytest.mark.parametrize(
    ("link", "expected"),
    [
        ("https://WWW.Example.com/path?q=1", "www.example.com"),
        ("http://shop.example.co.uk.", "shop.example.co.uk"),
        ("ftp://files.example.org/pub", "files.example.org"),
        ("mailto:Foo@Bar.com?subject=hello", "foo@bar.com"),
        ("example.org/offer", "example.org"),
        ("http://192.168.0.1/login", "192.168.0.1"),
        ("http://[::1]/", "::1"),
        ("javascript:alert(1)", None),
        ("/relative/path", None),
        ("#anchor", None),
        ("", None),
    ],
)
def test_link_target(link: str, expected: str | None) -> None:
    assert link_target(link) == expected


def test_link_targets_preserve_order_and_drop_unusable() -> None:
    links = ["http://b.example.com", "javascript:void(0)", "http://a.example.com"]

    assert link_targets(links) == ["b.example.com", "a.example.com"]


def test_normalize_address() -> None:
    assert normalize_address("Jane Doe <Jane.Doe@Example.COM>") == "jane.doe@example.com"
    assert normalize_address("postmaster@localhost") == "postmaster@localhost"
    assert normalize_address("nobody") is None
    assert normalize_address("") is None


def test_normalize_host() -> None:
    assert normalize_host("Mail.Example.COM.") == "mail.example.com"
    assert normalize_host("[10.0.0.1]") == "10.0.0.1"
    assert normalize_host("bad host!") is None
    assert normalize_host(None) is None
