from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager(ClientManager):
    """Manager class to handle the chat backend selected in the settings (llm_engine)."""

    ENGINES = {
        "openai": "OpenAI",
        "ollama": "Ollama",
    }

    def _get_client_type(self) -> str:
        return "llm"

    def _get_class_prefix(self) -> str:
        return "LLMClient"

    async def get_client(self) -> LLMClientInterface:
        """Return the booted chat client of the configured engine."""
        return await super().get_client()
