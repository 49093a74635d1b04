from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.errors import DataError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


class EmbedClientOpenai(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    def _get_dimensions_map(self) -> dict[str, int]:
        return {
            "text-embedding-ada-002": 1536,
            "text-embedding-3-small": 1536,
            "text-embedding-3-large": 3072,
        }

    def _get_default_dimensions(self) -> int:
        return 1536

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="api_key"),
            ProviderSetting(key="model", default="text-embedding-ada-002"),
            ProviderSetting(key="base_url", default="https://api.openai.com/v1", required=False),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self.get_config_val('api_key')}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.get_config_val("base_url")

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"input": texts, "model": self.get_model()}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        data = response_data.get("data") if isinstance(response_data, dict) else None
        if not isinstance(data, list):
            raise DataError("Invalid response from the OpenAI embedding API.")
        items = [item for item in data if isinstance(item, dict) and item.get("embedding")]
        items.sort(key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in items]
