from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager):
    """
    Manager class to handle the Embed client selected in the settings (embed_engine).
    """

    ENGINES = {
        "openai": "OpenAI Embedding",
        "ollama": "Ollama Embedding",
    }

    def _get_client_type(self) -> str:
        return "embed"

    def _get_class_prefix(self) -> str:
        return "EmbedClient"

    async def get_client(self) -> EmbedClientInterface:
        """
        Returns the booted Embed client of the configured engine.

        Raises:
            ConfigurationError: If the engine is unknown or its settings are incomplete.
        """
        return await super().get_client()
