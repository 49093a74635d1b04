import httpx
import pytest

from shared.clients.errors import ConfigurationError
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.listing.ListingClientManager import ListingClientManager
from shared.clients.listing.wordpress.ListingClientWordpress import ListingClientWordpress
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.vector.VectorClientManager import VectorClientManager
from shared.clients.vector.pinecone.VectorClientPinecone import VectorClientPinecone
from shared.clients.vector.wpxplore.VectorClientWpxplore import VectorClientWpxplore


def _failing_transport() -> httpx.MockTransport:
    def handler(request):
        raise AssertionError(f"unexpected request to {request.url}")

    return httpx.MockTransport(handler)


def test_unknown_engine_is_a_configuration_error(helper_config, settings_manager):
    settings_manager.save({"vector_engine": "milvus"})
    manager = VectorClientManager(helper_config=helper_config, settings_manager=settings_manager)

    assert not manager.is_configured()


@pytest.mark.asyncio
async def test_get_client_with_unknown_engine_raises(helper_config, settings_manager):
    settings_manager.save({"llm_engine": "claude"})
    manager = LLMClientManager(helper_config=helper_config, settings_manager=settings_manager)

    with pytest.raises(ConfigurationError, match="not available"):
        await manager.get_client()


def test_is_configured_follows_required_settings(helper_config, settings_manager):
    manager = VectorClientManager(
        helper_config=helper_config, settings_manager=settings_manager, transport=_failing_transport()
    )
    assert not manager.is_configured()

    settings_manager.save({
        "vector_wpxplore_api_base_url": "https://vectors.example.com",
        "vector_wpxplore_api_secret_key": "secret",
    })
    assert manager.is_configured()


def test_available_engines(helper_config, settings_manager):
    manager = VectorClientManager(helper_config=helper_config, settings_manager=settings_manager)
    assert set(manager.get_available_engines()) == {"wpxplore", "pinecone", "qdrant"}
    assert set(LLMClientManager(helper_config=helper_config).get_available_engines()) == {"openai", "ollama"}
    assert set(EmbedClientManager(helper_config=helper_config).get_available_engines()) == {"openai", "ollama"}


def test_manager_without_settings_source_is_not_configured(helper_config):
    assert not LLMClientManager(helper_config=helper_config).is_configured()


@pytest.mark.asyncio
async def test_client_is_cached_until_settings_change(helper_config, settings_manager):
    settings_manager.save({
        "vector_wpxplore_api_base_url": "https://vectors.example.com",
        "vector_wpxplore_api_secret_key": "secret",
        "vector_pinecone_api_key": "pc-key",
        "vector_pinecone_environment": "us-east1-gcp",
    })
    manager = VectorClientManager(
        helper_config=helper_config, settings_manager=settings_manager, transport=_failing_transport()
    )

    first = await manager.get_client()
    assert isinstance(first, VectorClientWpxplore)
    assert await manager.get_client() is first

    # an unrelated engine's settings leave the current client alone
    settings_manager.save({"vector_pinecone_namespace": "other"})
    assert await manager.get_client() is first

    settings_manager.save({"vector_wpxplore_api_base_url": "https://other.example.com"})
    second = await manager.get_client()
    assert second is not first

    settings_manager.save({"vector_engine": "pinecone"})
    third = await manager.get_client()
    assert isinstance(third, VectorClientPinecone)

    await manager.close()


@pytest.mark.asyncio
async def test_listing_manager_reads_environment(helper_config, monkeypatch):
    monkeypatch.delenv("LISTING_ENGINE", raising=False)
    monkeypatch.setenv("LISTING_WORDPRESS_BASE_URL", "https://directory.example.com")
    monkeypatch.setenv("LISTING_WORDPRESS_PAGE_SIZE", "50")
    manager = ListingClientManager(helper_config=helper_config, transport=_failing_transport())

    assert manager.is_configured()
    client = await manager.get_client()
    assert isinstance(client, ListingClientWordpress)
    assert client.get_post_type() == "at_biz_dir"
    await manager.close()


def test_listing_manager_without_base_url(helper_config, monkeypatch):
    monkeypatch.delenv("LISTING_ENGINE", raising=False)
    monkeypatch.delenv("LISTING_WORDPRESS_BASE_URL", raising=False)
    manager = ListingClientManager(helper_config=helper_config)

    assert not manager.is_configured()
