import pytest

from server.core.ChatService import RETRIEVAL_INSTRUCTIONS, ChatService
from server.core.ContextService import ContextService
from shared.clients.errors import ProviderError, TransportError
from shared.models.settings import DEFAULT_SYSTEM_PROMPT, AssistantSettings
from tests.fakes import FakeEmbedClient, FakeListingClient, FakeLLMClient, FakeManager, FakeVectorClient, make_listing


@pytest.fixture
def llm_client():
    return FakeLLMClient(reply="Try Bakery Schmidt.")


@pytest.fixture
def llm_manager(llm_client):
    return FakeManager(llm_client)


@pytest.fixture
def context_service(helper_config):
    return ContextService(
        helper_config=helper_config,
        listing_manager=FakeManager(FakeListingClient([make_listing(1, title="Bakery Schmidt")])),
        vector_manager=FakeManager(FakeVectorClient(), configured=False),
        embed_manager=FakeManager(FakeEmbedClient(), configured=False),
    )


@pytest.fixture
def service(helper_config, settings_manager, llm_manager, context_service):
    return ChatService(
        helper_config=helper_config,
        settings_manager=settings_manager,
        llm_manager=llm_manager,
        context_service=context_service,
    )


def test_system_prompt_order():
    settings = AssistantSettings(chat_agent_name="Ava", site_name="Bakery Guide", system_prompt="Be brief.")
    prompt = ChatService.build_system_prompt(settings, "Title: Bakery")
    assert prompt == (
        "Your name is Ava.\n"
        'You are the assistant of the website "Bakery Guide".\n\n'
        "Be brief.\n\n"
        "Available listings:\nTitle: Bakery\n\n"
        + RETRIEVAL_INSTRUCTIONS
    )


def test_system_prompt_minimal():
    settings = AssistantSettings(system_prompt="  ", chat_retrieval_instructions=False)
    assert ChatService.build_system_prompt(settings, "ctx") == f"{DEFAULT_SYSTEM_PROMPT}\n\nAvailable listings:\nctx"


def test_sanitize_history():
    history = [
        {"role": "user", "content": "<b>Where</b> can I eat?"},
        {"role": "assistant", "content": "Try <a href='#'>Pizza Roma</a>."},
        {"role": "user", "content": ""},
        {"content": "no role"},
        "not a turn",
    ]
    assert ChatService.sanitize_history(history) == [
        {"role": "user", "content": "Where can I eat?"},
        {"role": "assistant", "content": "Try Pizza Roma."},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("message", [None, "", "   ", "<p></p>"])
async def test_empty_message_is_rejected_without_calls(service, llm_manager, llm_client, message):
    result = await service.handle_chat(message)

    assert not result.success
    assert result.error_kind == "validation_error"
    assert result.message == "Message is required."
    assert llm_manager.get_client_calls == 0
    assert llm_client.requests == []


@pytest.mark.asyncio
async def test_unconfigured_backend(service, llm_manager, llm_client):
    llm_manager.configured = False

    result = await service.handle_chat("Hello")

    assert not result.success
    assert result.error_kind == "configuration_error"
    assert result.message == "The chat backend is not configured."
    assert llm_client.requests == []


@pytest.mark.asyncio
async def test_chat_dispatches_messages_with_settings(service, settings_manager, llm_client):
    settings_manager.save({"chat_model": "gpt-4o", "temperature": 0.2, "max_tokens": 300, "site_name": "Bakery Guide"})

    result = await service.handle_chat(
        "Any <i>bakery</i> nearby?",
        [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}],
    )

    assert result.success
    assert result.reply == "Try Bakery Schmidt."
    request = llm_client.requests[0]
    assert (request["model"], request["temperature"], request["max_tokens"]) == ("gpt-4o", 0.2, 300)
    messages = request["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert "Title: Bakery Schmidt" in messages[0]["content"]
    assert '"Bakery Guide"' in messages[0]["content"]
    assert messages[-1] == {"role": "user", "content": "Any bakery nearby?"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, kind",
    [
        (ProviderError("Incorrect API key provided.", status_code=401), "provider_error"),
        (TransportError("The openai service did not respond in time."), "transport_error"),
    ],
)
async def test_backend_errors_become_results(service, llm_client, error, kind):
    llm_client.error = error

    result = await service.handle_chat("Hello")

    assert not result.success
    assert result.error_kind == kind
    assert result.message == error.message
