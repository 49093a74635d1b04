from shared.clients.errors import DataError
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


class LLMClientOllama(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="base_url"),
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

    def _get_endpoint_chat(self) -> str:
        return "/api/chat"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict], model: str, temperature: float, max_tokens: int) -> dict:
        """Build the Ollama chat request body.

        Sampling options go into "options", the token limit as "num_predict".

        Returns:
            dict: {"model": "...", "messages": [...], "stream": False, "options": {...}}
        """
        return {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": float(temperature), "num_predict": int(max_tokens)},
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from an Ollama /api/chat response.

        Raises:
            DataError: If the response does not contain a valid message.
        """
        message = response_data.get("message") if isinstance(response_data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise DataError("Ollama chat response does not contain a valid message.")
        return content
