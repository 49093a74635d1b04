import json

import httpx
import pytest

from shared.clients.errors import DataError, ProviderError
from shared.clients.llm.ollama.LLMClientOllama import LLMClientOllama
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai, get_token_limit_param

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]


@pytest.mark.parametrize(
    "model, expected",
    [
        ("gpt-4o", "max_completion_tokens"),
        ("gpt-4o-mini", "max_completion_tokens"),
        ("gpt-4.1-nano", "max_completion_tokens"),
        ("gpt-5", "max_completion_tokens"),
        ("o1-preview", "max_completion_tokens"),
        ("o3-mini", "max_completion_tokens"),
        ("o4-mini", "max_completion_tokens"),
        ("gpt-3.5-turbo", "max_tokens"),
        ("gpt-4", "max_tokens"),
        ("gpt-4-turbo", "max_tokens"),
    ],
)
def test_token_limit_param(model, expected):
    assert get_token_limit_param(model) == expected


async def _openai(helper_config, handler) -> LLMClientOpenai:
    client = LLMClientOpenai(helper_config=helper_config)
    client.initialize({"api_key": "sk-test"})
    await client.boot(transport=httpx.MockTransport(handler))
    return client


@pytest.mark.asyncio
async def test_openai_chat_sends_newer_token_param(helper_config):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "Hello!"}}]})

    client = await _openai(helper_config, handler)
    reply = await client.do_chat(MESSAGES, model="gpt-4o", temperature=0.3, max_tokens=256)

    assert reply == "Hello!"
    assert seen["url"] == "https://api.openai.com/v1/chat/completions"
    assert seen["body"]["max_completion_tokens"] == 256
    assert "max_tokens" not in seen["body"]
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["messages"] == MESSAGES
    await client.close()


@pytest.mark.asyncio
async def test_openai_chat_sends_legacy_token_param(helper_config):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    client = await _openai(helper_config, handler)
    await client.do_chat(MESSAGES, model="gpt-3.5-turbo", temperature=0.7, max_tokens=1000)

    assert seen["body"]["max_tokens"] == 1000
    assert "max_completion_tokens" not in seen["body"]
    await client.close()


@pytest.mark.asyncio
async def test_openai_missing_reply_is_data_error(helper_config):
    client = await _openai(helper_config, lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(DataError, match="Invalid response from OpenAI API."):
        await client.do_chat(MESSAGES, model="gpt-4o", temperature=0.7, max_tokens=10)
    await client.close()


@pytest.mark.asyncio
async def test_openai_validation_error_is_joined(helper_config):
    body = {"detail": [{"loc": ["body", "temperature"], "msg": "too high"}, {"loc": ["body", "model"], "msg": "unknown"}]}
    client = await _openai(helper_config, lambda request: httpx.Response(422, json=body))
    with pytest.raises(ProviderError) as exc_info:
        await client.do_chat(MESSAGES, model="gpt-4o", temperature=0.7, max_tokens=10)
    assert exc_info.value.message == "temperature: too high; model: unknown"
    await client.close()


@pytest.mark.asyncio
async def test_ollama_chat_payload_and_reply(helper_config):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "Servus"}})

    client = LLMClientOllama(helper_config=helper_config)
    client.initialize({"base_url": "http://ollama:11434"})
    await client.boot(transport=httpx.MockTransport(handler))

    reply = await client.do_chat(MESSAGES, model="llama3", temperature=0.2, max_tokens=128)

    assert reply == "Servus"
    assert seen["url"] == "http://ollama:11434/api/chat"
    assert seen["body"] == {
        "model": "llama3",
        "messages": MESSAGES,
        "stream": False,
        "options": {"temperature": 0.2, "num_predict": 128},
    }
    await client.close()
