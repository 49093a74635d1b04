from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.errors import DataError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


class EmbedClientOllama(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    def _get_dimensions_map(self) -> dict[str, int]:
        return {
            "nomic-embed-text": 768,
            "mxbai-embed-large": 1024,
            "all-minilm": 384,
            "bge-m3": 1024,
        }

    def _get_default_dimensions(self) -> int:
        return 768

    def get_dimensions(self) -> int:
        # ollama model names may carry a tag ("nomic-embed-text:latest")
        model = self.get_model().split(":", 1)[0]
        return self._get_dimensions_map().get(model, self._get_default_dimensions())

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="base_url"),
            ProviderSetting(key="model", default="nomic-embed-text"),
            ProviderSetting(key="api_key", default="", required=False),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        api_key = self.get_config_val("api_key")
        if api_key:
            return {"Authorization": f"Bearer {api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.get_config_val("base_url")

    def get_endpoint_embedding(self) -> str:
        # ollama uses /api/embed for embedding requests
        return "/api/embed"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the Ollama embedding request body.

        Returns:
            dict: {"model": "...", "input": [...]}
        """
        return {"model": self.get_model(), "input": texts}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        embeddings = response_data.get("embeddings") if isinstance(response_data, dict) else None
        if not isinstance(embeddings, list):
            raise DataError(
                "Ollama response does not contain embeddings. "
                f"Response keys: {list(response_data.keys()) if isinstance(response_data, dict) else []}"
            )
        return embeddings
