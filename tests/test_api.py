import pytest
from fastapi.testclient import TestClient

from server.api_server import app
from server.core.ChatService import ChatService
from server.core.ContextService import ContextService
from services.listing_sync.SyncService import SyncService
from shared.clients.errors import NotSupportedError, ProviderError, get_status_code
from shared.clients.listing.models.Listing import SyncMarker
from tests.fakes import FakeEmbedClient, FakeListingClient, FakeLLMClient, FakeManager, FakeVectorClient, make_listing

AUTH = {"X-API-Key": "test-api-key"}


@pytest.fixture
def fakes():
    return {
        "listing": FakeListingClient([make_listing(1, title="Bakery Schmidt"), make_listing(2, status="draft")]),
        "vector": FakeVectorClient(),
        "embed": FakeEmbedClient(),
        "llm": FakeLLMClient(reply="Try Bakery Schmidt."),
    }


@pytest.fixture
def client(helper_config, settings_manager, fakes):
    # the lifespan is not run, app.state is wired with in-memory doubles instead
    listing_manager = FakeManager(fakes["listing"])
    provider_managers = {
        "embed": FakeManager(fakes["embed"], engines={"openai": "OpenAI", "ollama": "Ollama"}),
        "vector": FakeManager(fakes["vector"], engines={"wpxplore": "WPXplore"}),
        "llm": FakeManager(fakes["llm"], engines={"openai": "OpenAI"}),
    }
    context_service = ContextService(
        helper_config=helper_config,
        listing_manager=listing_manager,
        vector_manager=provider_managers["vector"],
        embed_manager=provider_managers["embed"],
    )
    app.state.helper_config = helper_config
    app.state.settings_manager = settings_manager
    app.state.listing_manager = listing_manager
    app.state.provider_managers = provider_managers
    app.state.context_service = context_service
    app.state.sync_service = SyncService(
        helper_config=helper_config,
        settings_manager=settings_manager,
        listing_manager=listing_manager,
        vector_manager=provider_managers["vector"],
        embed_manager=provider_managers["embed"],
    )
    app.state.chat_service = ChatService(
        helper_config=helper_config,
        settings_manager=settings_manager,
        llm_manager=provider_managers["llm"],
        context_service=context_service,
    )
    return TestClient(app)


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/settings"),
        ("post", "/settings"),
        ("post", "/bulk-sync"),
        ("post", "/webhook/listing"),
        ("get", "/providers"),
        ("get", "/directory-types"),
        ("get", "/listing-statuses"),
    ],
)
@pytest.mark.parametrize("headers", [{}, {"X-API-Key": "wrong"}])
def test_admin_routes_require_api_key(client, method, path, headers):
    response = getattr(client, method)(path, headers=headers)
    assert response.status_code == 401


def test_chat_success(client, fakes):
    response = client.post("/chat", json={"message": "Any bakery?", "conversation": [{"role": "user", "content": "Hi"}]})

    assert response.status_code == 200
    assert response.json() == {"success": True, "response": "Try Bakery Schmidt."}
    assert len(fakes["llm"].requests[0]["messages"]) == 3


def test_chat_without_message(client, fakes):
    response = client.post("/chat", json={})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error_kind": "validation_error", "message": "Message is required."}
    assert fakes["llm"].requests == []


def test_chat_unconfigured_backend(client):
    client.app.state.provider_managers["llm"].configured = False

    response = client.post("/chat", json={"message": "Hello"})

    assert response.status_code == 400
    assert response.json()["error_kind"] == "configuration_error"


def test_public_listings(client):
    response = client.get("/listings")

    assert response.status_code == 200
    assert [item["title"] for item in response.json()] == ["Bakery Schmidt"]


def test_settings_round_trip(client):
    response = client.post("/settings", headers=AUTH, json={"llm_openai_api_key": "sk-live-123", "temperature": 0.3})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["settings"]["llm_openai_api_key"] == "sk-***"

    settings = client.get("/settings", headers=AUTH).json()
    assert settings["temperature"] == 0.3
    assert settings["llm_openai_api_key"] == "sk-***"


def test_invalid_settings_are_rejected(client):
    response = client.post("/settings", headers=AUTH, json={"temperature": 3})

    assert response.status_code == 400
    assert response.json()["error_kind"] == "configuration_error"


def test_bulk_sync(client, fakes):
    response = client.post("/bulk-sync", headers=AUTH, json={"post_ids": [1, 2]})

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    assert response.json()["success"] == 2
    assert set(fakes["listing"].saved_markers) == {1, 2}


def test_bulk_sync_without_listings(client):
    client.app.state.listing_manager.client.listings.clear()
    response = client.post("/bulk-sync", headers=AUTH, json={})

    assert response.status_code == 400
    assert response.json()["message"] == "No listings found to sync."


def test_webhook_save_runs_auto_sync(client, settings_manager, fakes):
    settings_manager.save({"vector_auto_sync": True})

    response = client.post("/webhook/listing", headers=AUTH, json={"listing_id": 1})

    assert response.status_code == 200
    assert response.json() == {"status": "accepted", "listing_id": 1, "action": "save"}
    assert fakes["vector"].calls == ["upsert"]


def test_webhook_save_without_auto_sync_contacts_no_provider(client, fakes):
    client.post("/webhook/listing", headers=AUTH, json={"listing_id": 1})
    assert fakes["vector"].calls == []


def test_webhook_delete(client, fakes):
    fakes["listing"].listings[1].sync_marker = SyncMarker(synced=True, external_vector_id="vec-7")

    response = client.post("/webhook/listing", headers=AUTH, json={"listing_id": 1, "action": "delete"})

    assert response.json()["action"] == "delete"
    assert fakes["vector"].deleted == ["vec-7"]


def test_providers(client):
    response = client.get("/providers", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["vector"] == {"engine": "wpxplore", "configured": True, "available": {"wpxplore": "WPXplore"}}
    assert body["llm"]["engine"] == "openai"
    assert set(body) == {"embed", "vector", "llm"}


def test_directory_types_and_statuses(client):
    assert client.get("/directory-types", headers=AUTH).json() == [{"id": 1, "name": "General", "slug": "general"}]
    statuses = client.get("/listing-statuses", headers=AUTH).json()
    assert {"slug": "publish", "name": "Published"} in statuses


@pytest.mark.parametrize(
    "kind, status_code",
    [
        ("configuration_error", 400),
        ("validation_error", 400),
        ("not_supported", 400),
        ("provider_error", 500),
        ("transport_error", 500),
        ("data_error", 500),
        (None, 500),
    ],
)
def test_status_code_per_error_kind(kind, status_code):
    assert get_status_code(kind) == status_code


@pytest.mark.parametrize(
    "error, status_code",
    [
        (NotSupportedError("Streaming is not supported."), 400),
        (ProviderError("Upstream failure.", status_code=502), 500),
    ],
)
def test_chat_backend_errors_share_the_app_status_mapping(client, fakes, error, status_code):
    fakes["llm"].error = error

    response = client.post("/chat", json={"message": "Hello"})

    assert response.status_code == status_code
    assert response.json() == {"success": False, "error_kind": error.kind, "message": error.message}
