import json

import httpx
import pytest

from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.clients.errors import DataError, NoEmbeddingError


def _fail_on_request(request):
    raise AssertionError(f"unexpected request to {request.url}")


async def _openai(helper_config, handler, **settings) -> EmbedClientOpenai:
    client = EmbedClientOpenai(helper_config=helper_config)
    client.initialize({"api_key": "sk-test", **settings})
    await client.boot(transport=httpx.MockTransport(handler))
    return client


async def _ollama(helper_config, handler, **settings) -> EmbedClientOllama:
    client = EmbedClientOllama(helper_config=helper_config)
    client.initialize({"base_url": "http://ollama:11434", **settings})
    await client.boot(transport=httpx.MockTransport(handler))
    return client


@pytest.mark.asyncio
async def test_openai_batch_embed_restores_input_order(helper_config):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [
            {"index": 1, "embedding": [0.2, 0.2]},
            {"index": 0, "embedding": [0.1, 0.1]},
        ]})

    client = await _openai(helper_config, handler, model="text-embedding-3-small")
    vectors = await client.do_batch_embed(["first", "second"])

    assert vectors == [[0.1, 0.1], [0.2, 0.2]]
    assert seen["url"] == "https://api.openai.com/v1/embeddings"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {"input": ["first", "second"], "model": "text-embedding-3-small"}
    await client.close()


@pytest.mark.asyncio
async def test_empty_batch_makes_no_request(helper_config):
    openai_client = await _openai(helper_config, _fail_on_request)
    ollama_client = await _ollama(helper_config, _fail_on_request)

    assert await openai_client.do_batch_embed([]) == []
    assert await ollama_client.do_batch_embed([]) == []

    await openai_client.close()
    await ollama_client.close()


@pytest.mark.asyncio
async def test_embed_matches_single_element_batch(helper_config):
    client = await _ollama(helper_config, lambda request: httpx.Response(200, json={"embeddings": [[0.5, 0.25, 0.125]]}))

    single = await client.do_embed("pizza in town")
    batch = await client.do_batch_embed(["pizza in town"])

    assert single == batch[0]
    await client.close()


@pytest.mark.asyncio
async def test_embed_without_vector_raises_no_embedding(helper_config):
    client = await _ollama(helper_config, lambda request: httpx.Response(200, json={"embeddings": []}))
    with pytest.raises(NoEmbeddingError, match="No embedding generated."):
        await client.do_embed("text")
    await client.close()


@pytest.mark.asyncio
async def test_malformed_response_raises_data_error(helper_config):
    client = await _openai(helper_config, lambda request: httpx.Response(200, json={"object": "list"}))
    with pytest.raises(DataError):
        await client.do_batch_embed(["text"])
    await client.close()


def test_dimensions_come_from_static_table(helper_config):
    openai_client = EmbedClientOpenai(helper_config=helper_config)
    openai_client.initialize({"api_key": "sk-test", "model": "text-embedding-3-large"})
    assert openai_client.get_dimensions() == 3072

    openai_client.initialize({"api_key": "sk-test", "model": "some-future-model"})
    assert openai_client.get_dimensions() == 1536

    ollama_client = EmbedClientOllama(helper_config=helper_config)
    ollama_client.initialize({"base_url": "http://ollama:11434", "model": "mxbai-embed-large:latest"})
    assert ollama_client.get_dimensions() == 1024

    ollama_client.initialize({"base_url": "http://ollama:11434"})
    assert ollama_client.get_dimensions() == 768
