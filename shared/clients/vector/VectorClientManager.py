from shared.clients.ClientManager import ClientManager
from shared.clients.vector.VectorClientInterface import VectorClientInterface


class VectorClientManager(ClientManager):
    """
    Manager class to handle the vector store client selected in the settings (vector_engine).
    """

    ENGINES = {
        "wpxplore": "WpXplore",
        "pinecone": "Pinecone",
        "qdrant": "Qdrant",
    }

    def _get_client_type(self) -> str:
        return "vector"

    def _get_class_prefix(self) -> str:
        return "VectorClient"

    async def get_client(self) -> VectorClientInterface:
        """
        Returns the booted vector store client of the configured engine.

        Raises:
            ConfigurationError: If the engine is unknown or its settings are incomplete.
        """
        return await super().get_client()
