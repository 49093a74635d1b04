"""Chat dispatcher.

Assembles the system prompt (persona, site, base prompt, listings context,
retrieval instructions), appends the sanitized conversation and the visitor
message, and dispatches it to the configured chat backend. Every failure is
returned as a ChatResult instead of an exception.
"""

from pydantic import BaseModel

from server.core.ContextService import ContextService
from shared.clients.errors import BridgeError, ConfigurationError, InputValidationError
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import strip_html
from shared.models.settings import DEFAULT_SYSTEM_PROMPT, AssistantSettings
from shared.settings.SettingsManager import SettingsManager

RETRIEVAL_INSTRUCTIONS = (
    "Instructions for using the listings:\n"
    "- Match names, categories and locations case-insensitively; the visitor may not use the exact spelling.\n"
    "- Only answer from the listings above. If none of them fits, say so instead of inventing one, "
    "and correct yourself if an earlier answer in this conversation was wrong.\n"
    "- When you recommend a listing, name it by its title and include its URL when one is given."
)


class ChatResult(BaseModel):
    success: bool
    reply: str | None = None
    error_kind: str | None = None
    message: str | None = None


class ChatService:
    def __init__(
        self,
        helper_config: HelperConfig,
        settings_manager: SettingsManager,
        llm_manager: LLMClientManager,
        context_service: ContextService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._settings_manager = settings_manager
        self._llm_manager = llm_manager
        self._context_service = context_service

    ##########################################
    ############ PROMPT ASSEMBLY #############
    ##########################################

    @staticmethod
    def build_system_prompt(settings: AssistantSettings, context: str) -> str:
        """Compose the single system turn.

        Order: agent preamble, site preamble, base prompt, listings context and,
        when enabled, the retrieval instructions.
        """
        prompt = settings.system_prompt.strip() or DEFAULT_SYSTEM_PROMPT
        if settings.site_name.strip():
            prompt = f'You are the assistant of the website "{settings.site_name.strip()}".\n\n{prompt}'
        if settings.chat_agent_name.strip():
            prompt = f"Your name is {settings.chat_agent_name.strip()}.\n{prompt}"
        prompt += "\n\nAvailable listings:\n" + context
        if settings.chat_retrieval_instructions:
            prompt += "\n\n" + RETRIEVAL_INSTRUCTIONS
        return prompt

    @staticmethod
    def sanitize_history(conversation: list[dict] | None) -> list[dict]:
        """Strip markup from history turns, keeping their order. Turns without role or content are skipped."""
        messages = []
        for turn in conversation or []:
            if not isinstance(turn, dict):
                continue
            role = strip_html(str(turn.get("role") or ""))
            content = strip_html(str(turn.get("content") or ""))
            if role and content:
                messages.append({"role": role, "content": content})
        return messages

    async def build_messages(self, message: str, conversation: list[dict] | None, settings: AssistantSettings) -> list[dict]:
        context = await self._context_service.build_context(message)
        return [
            {"role": "system", "content": self.build_system_prompt(settings, context)},
            *self.sanitize_history(conversation),
            {"role": "user", "content": message},
        ]

    ##########################################
    ################# CHAT ###################
    ##########################################

    async def handle_chat(self, message: str | None, conversation: list[dict] | None = None) -> ChatResult:
        """Answer a visitor message.

        Args:
            message (str | None): The visitor message.
            conversation (list[dict] | None): Prior turns as {"role", "content"}.

        Returns:
            ChatResult: The reply, or a tagged error with a human-readable message.
        """
        message = strip_html(message or "")
        if not message:
            error = InputValidationError("Message is required.")
            return ChatResult(success=False, error_kind=error.kind, message=error.message)

        if not self._llm_manager.is_configured():
            error = ConfigurationError("The chat backend is not configured.")
            return ChatResult(success=False, error_kind=error.kind, message=error.message)

        settings = self._settings_manager.get_settings()
        try:
            messages = await self.build_messages(message, conversation, settings)
            llm_client = await self._llm_manager.get_client()
            reply = await llm_client.do_chat(
                messages,
                model=settings.chat_model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
        except BridgeError as e:
            self.logging.error("Chat request failed (%s): %s", e.kind, e.message)
            return ChatResult(success=False, error_kind=e.kind, message=e.message)

        return ChatResult(success=True, reply=reply)
