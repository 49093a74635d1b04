from typing import Any

from shared.clients.ClientManager import ClientManager
from shared.clients.listing.ListingClientInterface import ListingClientInterface


class ListingClientManager(ClientManager):
    """
    Manager class to handle the listing source client.

    Unlike the AI providers, the listing source is process configuration: the engine
    is read from LISTING_ENGINE (default "wordpress") and the settings bag from all
    environment variables prefixed LISTING_<ENGINE>_.
    """

    ENGINES = {
        "wordpress": "WordPress REST API",
    }

    def _get_client_type(self) -> str:
        return "listing"

    def _get_class_prefix(self) -> str:
        return "ListingClient"

    def _read_settings(self) -> tuple[str, dict[str, Any]]:
        engine = self.helper_config.get_string_val("LISTING_ENGINE", default="wordpress").lower()
        return engine, self.helper_config.get_prefixed_vals(f"LISTING_{engine.upper()}_")

    async def get_client(self) -> ListingClientInterface:
        """
        Returns the booted listing client.

        Raises:
            ConfigurationError: If the engine is unknown or its settings are incomplete.
        """
        return await super().get_client()
