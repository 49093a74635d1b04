from shared.clients.errors import DataError
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting

# model families that reject "max_tokens" and expect "max_completion_tokens"
NEWER_MODEL_MARKERS = ("gpt-4o", "gpt-4.1", "gpt-5", "o1", "o3", "o4")


def get_token_limit_param(model: str) -> str:
    """Return the request parameter name carrying the token limit for a model.

    Args:
        model (str): The chat model name (e.g. "gpt-4o-mini").

    Returns:
        str: "max_completion_tokens" for newer model families, "max_tokens" otherwise.
    """
    model = (model or "").lower()
    if any(marker in model for marker in NEWER_MODEL_MARKERS):
        return "max_completion_tokens"
    return "max_tokens"


class LLMClientOpenai(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="api_key"),
            ProviderSetting(key="base_url", default="https://api.openai.com/v1", required=False),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self.get_config_val('api_key')}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.get_config_val("base_url")

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict], model: str, temperature: float, max_tokens: int) -> dict:
        return {
            "model": model,
            "messages": messages,
            "temperature": float(temperature),
            get_token_limit_param(model): int(max_tokens),
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        try:
            content = response_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str):
            raise DataError("Invalid response from OpenAI API.")
        return content
