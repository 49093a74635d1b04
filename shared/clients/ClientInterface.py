from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent
from typing import Any

from shared.clients.errors import ConfigurationError, DataError, ProviderError, TransportError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


def extract_error_message(response: httpx.Response) -> str:
    """Build a human-readable message from an error response.

    Understands the common provider shapes: {"error": {"message": ...}},
    {"error": "..."}, {"message": "..."}, validation errors as
    {"detail": [{"loc": [...], "msg": ...}]} or {"errors": {"field": [...]}}.
    Per-field validation messages are joined into one string.

    Args:
        response (httpx.Response): The failed response.

    Returns:
        str: The extracted message, or a generic status-code message.
    """
    generic = f"API request failed with status code {response.status_code}."
    try:
        body = response.json()
    except ValueError:
        return generic
    if not isinstance(body, dict):
        return generic

    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error

    detail = body.get("detail")
    if isinstance(detail, list):
        parts = []
        for item in detail:
            if not isinstance(item, dict):
                continue
            loc = [str(part) for part in item.get("loc", []) if part not in ("body", "query")]
            msg = item.get("msg", "")
            parts.append(f"{'.'.join(loc)}: {msg}" if loc else str(msg))
        if parts:
            return "; ".join(parts)
    if isinstance(detail, str) and detail:
        return detail

    errors = body.get("errors")
    if isinstance(errors, dict) and errors:
        parts = []
        for field, messages in errors.items():
            if isinstance(messages, list):
                messages = ", ".join(str(m) for m in messages)
            parts.append(f"{field}: {messages}")
        return "; ".join(parts)

    if isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return generic


class ClientInterface(ABC):
    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        # client and settings bag, filled by initialize()
        self._client: httpx.AsyncClient | None = None
        self._settings: dict[str, Any] = {}

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def initialize(self, settings: dict[str, Any]) -> None:
        """Store the provider settings bag and validate it.

        Args:
            settings (dict[str, Any]): Provider settings without the type/engine prefix
                (e.g. {"api_key": "...", "model": "..."}).

        Raises:
            ConfigurationError: If a required setting is missing.
        """
        self._settings = dict(settings)
        self.validate_full_configuration()

    def validate_full_configuration(self) -> None:
        """
        Validates that all required settings for the client are set.

        Raises:
            ConfigurationError: Naming the first required setting that is missing or empty.
        """
        for setting in self._get_required_config():
            if setting.required and self._is_empty(self._settings.get(setting.key)) and self._is_empty(setting.default):
                raise ConfigurationError(
                    f'Required setting "{setting.key}" is missing for {self.get_client_type()} engine "{self.get_engine_name()}".'
                )

    @staticmethod
    def _is_empty(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        if isinstance(value, (list, dict, set, tuple)):
            return not value
        return False

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """
        Returns the type of the client in lowercase. E.g. "vector"
        """
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "vector"
        """
        pass

    def get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "pinecone"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "Pinecone"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[ProviderSetting]:
        """
        Returns all settings the client reads from its settings bag.

        Returns:
            list[ProviderSetting]: The declared settings, required or optional.
        """
        pass

    def get_required_settings(self) -> set[str]:
        """
        Returns:
            set[str]: The names of the settings that must be non-empty before first use.
        """
        return {setting.key for setting in self._get_required_config() if setting.required}

    def get_config_val(self, key: str) -> Any:
        """
        Retrieves a setting from the provider bag, applying the declared default and type.

        Args:
            key (str): The setting name (e.g. "api_key").

        Raises:
            ValueError: If the setting is not declared or cannot be converted to its type.
        """
        declared = {setting.key: setting for setting in self._get_required_config()}
        if key not in declared:
            raise ValueError(f"Setting '{key}' is not declared by {self.get_client_type()} engine '{self.get_engine_name()}'.")
        setting = declared[key]
        value = self._settings.get(key)
        if self._is_empty(value):
            return setting.default

        if setting.val_type == "string":
            return str(value).strip()
        elif setting.val_type == "number":
            try:
                return value if isinstance(value, (int, float)) else (int(value) if "." not in str(value) else float(value))
            except ValueError:
                raise ValueError(f"Setting '{key}' of {self.get_engine_name()} is not a valid number: '{value}'.")
        elif setting.val_type == "bool":
            return value if isinstance(value, bool) else str(value).lower() in ("true", "1", "yes")
        elif setting.val_type == "list":
            return value if isinstance(value, list) else [v.strip() for v in str(value).split(",") if v.strip()]
        else:
            raise ValueError(f"Unsupported setting type '{setting.val_type}' for '{key}' in {self.get_client_type().upper()} client '{self.get_engine_name()}'.")

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the authentication header for the client backend server, if a key is set.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the base URL of the client backend server (e.g. "https://api.openai.com/v1").
        """
        pass

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialise the HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Optional transport override (tests).
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        url: str | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = True,
    ) -> httpx.Response:
        """Send an HTTP request to the client backend.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, …).
            content: Raw bytes / string body.
            json: JSON-serialisable body (sets Content-Type automatically).
            params: URL query parameters.
            endpoint: Path to append to the base URL (leading slash optional).
            url: Absolute URL, used instead of base URL + endpoint when given.
            additional_headers: Extra headers that override the defaults.
            raise_on_error: Raise ProviderError on a non-2xx status.

        Returns:
            The raw httpx.Response.

        Raises:
            TransportError: If the backend cannot be reached or the request times out.
            ProviderError: If the backend answers with a non-2xx status (when raise_on_error is True).
        """
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        if url is None:
            endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
            url = f"{self._get_base_url().rstrip('/')}{endpoint}"

        headers: dict = {}
        headers.update(self._get_auth_header())
        if additional_headers:
            headers.update(additional_headers)

        kwargs: dict = {
            "url": url,
            "headers": headers,
            "timeout": self.timeout,
            "params": params,
        }
        if content is not None:
            kwargs["content"] = content
        elif json is not None:
            kwargs["json"] = json

        try:
            response = await self._client.request(method, **kwargs)
        except httpx.TimeoutException as exc:
            self.logging.error("Request to %s timed out after %ss: %s", url, self.timeout, exc)
            raise TransportError(f"The {self.get_engine_name()} service did not respond in time.") from exc
        except httpx.TransportError as exc:
            self.logging.error("Request to %s failed: %s", url, exc)
            raise TransportError(f"Could not connect to the {self.get_engine_name()} service.") from exc

        if raise_on_error and not response.is_success:
            self.logging.error(
                "Request to %s failed with status %d: %s",
                url,
                response.status_code,
                response.text[:500],
            )
            raise ProviderError(extract_error_message(response), status_code=response.status_code)

        return response

    def parse_json(self, response: httpx.Response) -> Any:
        """Decode a JSON response body.

        Raises:
            DataError: If the body is not valid JSON.
        """
        try:
            return response.json()
        except ValueError as exc:
            raise DataError(f"Invalid JSON response from the {self.get_engine_name()} service.") from exc
