from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/api/chat")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[dict], model: str, temperature: float, max_tokens: int) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).
            model (str): The chat model name.
            temperature (float): Sampling temperature (0.0 to 1.0).
            max_tokens (int): Upper bound of generated tokens.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.

        Raises:
            DataError: If the response does not contain a reply.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[dict], model: str, temperature: float, max_tokens: int) -> str:
        """Send a chat/completion request and return the assistant reply text.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).
            model (str): The chat model name.
            temperature (float): Sampling temperature (0.0 to 1.0).
            max_tokens (int): Upper bound of generated tokens.

        Returns:
            str: The assistant reply text.

        Raises:
            TransportError: If the backend cannot be reached.
            ProviderError: If the backend answers with a non-2xx status.
            DataError: If the response does not contain a valid reply.
        """
        body = self.get_chat_payload(messages, model=model, temperature=temperature, max_tokens=max_tokens)
        self.logging.debug("Sending chat request with %d messages to %s (model=%s).", len(messages), self.get_engine_name(), model)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=body,
        )
        return self.extract_chat_response(self.parse_json(response))
