from abc import ABC, abstractmethod
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.errors import ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.settings.SettingsManager import SettingsManager


class ClientManager(ABC):
    """
    Base manager that resolves the configured engine of one provider type and
    keeps exactly one "current" client instance for it.

    The engine is read from the setting "<type>_engine" and the client's settings
    bag from all settings prefixed "<type>_<engine>_". The cached client is rebuilt
    (and the previous one closed) whenever the engine or its settings bag changes.
    """

    # engine name -> display label, overridden per provider type
    ENGINES: dict[str, str] = {}

    def __init__(
        self,
        helper_config: HelperConfig,
        settings_manager: SettingsManager | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self._settings_manager = settings_manager
        self._transport = transport

        # current client and the configuration it was built from
        self._client: ClientInterface | None = None
        self._client_engine: str | None = None
        self._client_settings: dict[str, Any] | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the provider type handled by the manager. E.g. "vector"
        """
        pass

    @abstractmethod
    def _get_class_prefix(self) -> str:
        """
        Returns the class name prefix of the engine implementations. E.g. "VectorClient"
        """
        pass

    def get_available_engines(self) -> dict[str, str]:
        """
        Returns:
            dict[str, str]: The registered engine names mapped to their display labels.
        """
        return dict(self.ENGINES)

    def _read_settings(self) -> tuple[str, dict[str, Any]]:
        """
        Reads the configured engine name and its settings bag.

        Returns:
            tuple[str, dict[str, Any]]: The lowercase engine name and the unprefixed settings bag.

        Raises:
            ConfigurationError: If no settings manager is attached or no engine is configured.
        """
        if self._settings_manager is None:
            raise ConfigurationError(f"No settings source attached to the {self._get_client_type()} manager.")
        client_type = self._get_client_type()
        all_settings = self._settings_manager.get_all()
        engine = str(all_settings.get(f"{client_type}_engine") or "").strip().lower()
        if not engine:
            raise ConfigurationError(f"No {client_type} engine specified in settings ({client_type}_engine).")
        prefix = f"{client_type}_{engine}_"
        bag = {key[len(prefix):]: val for key, val in all_settings.items() if key.startswith(prefix)}
        return engine, bag

    ##########################################
    ############### BUILDERS #################
    ##########################################

    def _instantiate(self, engine: str) -> ClientInterface:
        """
        Imports and instantiates the client class of an engine.

        The implementation is expected at shared.clients.<type>.<engine>.<Prefix><Engine>.

        Raises:
            ConfigurationError: If the engine is not registered or cannot be imported.
        """
        client_type = self._get_client_type()
        if engine not in self.ENGINES:
            raise ConfigurationError(f'{client_type.capitalize()} service "{engine}" is not available.')
        class_name = f"{self._get_class_prefix()}{engine.capitalize()}"
        try:
            module = __import__(
                f"shared.clients.{client_type}.{engine}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Unsupported {client_type} engine '{engine}'. Error: {e}")
        return client_class(helper_config=self.helper_config)

    def is_configured(self) -> bool:
        """
        Checks whether the configured engine has all required settings, without any network call.

        Returns:
            bool: True if get_client() would pass configuration validation.
        """
        try:
            engine, bag = self._read_settings()
            self._instantiate(engine).initialize(bag)
        except ConfigurationError as e:
            self.logging.debug("%s provider not configured: %s", self._get_client_type(), e)
            return False
        return True

    async def get_client(self) -> ClientInterface:
        """
        Returns the booted client of the configured engine, rebuilding it when the configuration changed.

        Raises:
            ConfigurationError: If the engine is unknown or required settings are missing.
        """
        engine, bag = self._read_settings()
        if self._client is not None and self._client_engine == engine and self._client_settings == bag:
            return self._client

        client = self._instantiate(engine)
        client.initialize(bag)
        await client.boot(transport=self._transport)
        self.logging.debug("Instantiated %s client for engine: %s", self._get_client_type(), engine)

        previous = self._client
        self._client, self._client_engine, self._client_settings = client, engine, bag
        if previous is not None:
            await previous.close()
        return client

    async def close(self) -> None:
        """Close the cached client, if any."""
        if self._client is not None:
            await self._client.close()
        self._client, self._client_engine, self._client_settings = None, None, None
