from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.errors import NoEmbeddingError
from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    def get_model(self) -> str:
        """
        Returns the configured embedding model name.
        """
        return self.get_config_val("model")

    @abstractmethod
    def _get_dimensions_map(self) -> dict[str, int]:
        """
        Returns the static output dimension per known model name.
        """
        pass

    @abstractmethod
    def _get_default_dimensions(self) -> int:
        """
        Returns the dimension assumed for models missing from the map.
        """
        pass

    def get_dimensions(self) -> int:
        """
        Returns the vector dimension of the configured model.

        Resolved from a static table so callers can size an index before any
        embedding has been generated.
        """
        return self._get_dimensions_map().get(self.get_model(), self._get_default_dimensions())

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests (e.g. "/api/embed").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]}, already ordered
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}, needs sorting

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            DataError: If the response format is invalid.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_batch_embed(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts with one request.

        An empty input returns an empty list without contacting the backend.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            TransportError: If the backend cannot be reached.
            ProviderError: If the backend answers with a non-2xx status.
            DataError: If the response does not contain embeddings.
        """
        if not texts:
            return []
        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=self.get_embed_payload(texts),
        )
        return self.extract_embeddings_from_response(self.parse_json(response))

    async def do_embed(self, text: str) -> list[float]:
        """Embed a single text.

        Equivalent to do_batch_embed([text])[0].

        Raises:
            NoEmbeddingError: If the backend produced no vector.
        """
        vectors = await self.do_batch_embed([text])
        if not vectors or not vectors[0]:
            raise NoEmbeddingError("No embedding generated.")
        return vectors[0]
