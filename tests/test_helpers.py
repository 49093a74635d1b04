import logging

import pytest

from shared.helper.TTLCache import TTLCache
from shared.helper.text_helper import strip_html
from shared.logging.logging_setup import SecretRedactionFilter, redact_secrets


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_ttl_cache_expires_by_age():
    clock = FakeClock()
    cache = TTLCache(ttl=60, clock=clock)
    cache.set("listings", [1, 2])

    clock.now += 59
    assert cache.get("listings") == [1, 2]
    assert cache.has("listings")

    clock.now += 1
    assert cache.get("listings") is None
    assert not cache.has("listings")


def test_ttl_cache_delete_and_clear():
    cache = TTLCache(ttl=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    assert cache.get("a", "missing") == "missing"
    cache.clear()
    assert not cache.has("b")


@pytest.mark.asyncio
async def test_get_or_load_caches_results_but_not_errors():
    clock = FakeClock()
    cache = TTLCache(ttl=10, clock=clock)
    calls = []

    async def failing():
        calls.append("fail")
        raise RuntimeError("source down")

    async def loader():
        calls.append("load")
        return ["listing"]

    with pytest.raises(RuntimeError):
        await cache.get_or_load("k", failing)
    assert await cache.get_or_load("k", loader) == ["listing"]
    assert await cache.get_or_load("k", loader) == ["listing"]
    assert calls == ["fail", "load"]

    clock.now += 10
    await cache.get_or_load("k", loader)
    assert calls == ["fail", "load", "load"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("<p>Hello <b>World</b></p>", "Hello World"),
        ("Fish &amp; Chips", "Fish & Chips"),
        ("<script>alert(1)</script>Menu<style>p{}</style>", "Menu"),
        ("<p>one</p>\n\n\n\n<p>two</p>", "one\n\ntwo"),
        ("  spaced    out  ", "spaced out"),
        ("", ""),
        (None, ""),
    ],
)
def test_strip_html(raw, expected):
    assert strip_html(raw) == expected


@pytest.mark.parametrize(
    "line, expected",
    [
        ("Incorrect API key provided: sk-abcd1234567890", "Incorrect API key provided: sk-abcd***"),
        ('{"api_key": "pc-secret"}', '{"api_key": "***"}'),
        ("Authorization: Bearer token123", "Authorization: Bearer ***"),
        ("Synced listing #12.", "Synced listing #12."),
    ],
)
def test_redact_secrets(line, expected):
    assert redact_secrets(line) == expected


def test_logger_redacts_credentials(helper_config, caplog):
    logger = helper_config.get_logger()
    redact = SecretRedactionFilter()
    logger.addFilter(redact)
    try:
        with caplog.at_level(logging.INFO, logger="listing_ai_bridge"):
            logger.info("Calling provider with api_key=%s", "topsecret", color="cyan")
    finally:
        logger.removeFilter(redact)
    record = caplog.records[-1]
    assert record.getMessage() == "Calling provider with api_key=***"
    assert record.color == "cyan"
