"""Retrieval and context assembly for the chat system prompt."""

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.errors import BridgeError, ConfigurationError, NotSupportedError
from shared.clients.listing.ListingClientInterface import ListingClientInterface
from shared.clients.listing.ListingClientManager import ListingClientManager
from shared.clients.listing.models.Listing import Listing
from shared.clients.vector.VectorClientManager import VectorClientManager
from shared.clients.vector.models.VectorMatch import VectorMatch
from shared.helper.HelperConfig import HelperConfig
from shared.helper.TTLCache import TTLCache
from shared.helper.text_helper import strip_html

DEFAULT_TOP_K = 3
LISTINGS_CACHE_KEY = "listings"
LISTINGS_CACHE_TTL = 3600  # seconds
NO_LISTINGS_CONTEXT = "No listings are currently available."


class ContextService:
    """Builds the listings context block: semantic matches when possible, else all published listings."""

    def __init__(
        self,
        helper_config: HelperConfig,
        listing_manager: ListingClientManager,
        vector_manager: VectorClientManager,
        embed_manager: EmbedClientManager,
        top_k: int = DEFAULT_TOP_K,
        cache: TTLCache | None = None,
    ) -> None:
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
            raise ConfigurationError(f"top_k must be a positive integer, got {top_k!r}.")
        self.logging = helper_config.get_logger()
        self._listing_manager = listing_manager
        self._vector_manager = vector_manager
        self._embed_manager = embed_manager
        self._top_k = top_k
        self._cache = cache or TTLCache(ttl=LISTINGS_CACHE_TTL)

    ##########################################
    ############### RENDERING ################
    ##########################################

    @staticmethod
    def render_listing(listing: Listing) -> str:
        """Render one listing as a context block."""
        lines = [
            f"Title: {strip_html(listing.title)}",
            f"Content: {strip_html(listing.content)}",
        ]
        if listing.permalink:
            lines.append(f"URL: {listing.permalink}")
        if listing.custom_fields:
            lines.append("Related Information:")
            lines.extend(f"{label}: {value}" for label, value in listing.custom_fields.items())
        return "\n".join(lines)

    def render_listings(self, listings: list[Listing]) -> str:
        return "\n\n".join(self.render_listing(listing) for listing in listings)

    ##########################################
    ############### LISTINGS #################
    ##########################################

    async def _load_listings(self) -> list[Listing]:
        listing_client = await self._listing_manager.get_client()
        listings = await listing_client.do_fetch_published()
        return [listing for listing in listings if self._is_eligible(listing, listing_client)]

    async def get_listings(self) -> list[Listing]:
        """
        Returns all published, non-blocked listings. Cached for one hour.

        Raises:
            BridgeError: If the listing source fails and nothing is cached.
        """
        return await self._cache.get_or_load(LISTINGS_CACHE_KEY, self._load_listings)

    @staticmethod
    def _is_eligible(listing: Listing, listing_client: ListingClientInterface) -> bool:
        return listing.post_type == listing_client.get_post_type() and listing.is_published() and not listing.ai_blocked

    ##########################################
    ################ CONTEXT #################
    ##########################################

    async def fallback_context(self) -> str:
        """
        Renders every eligible listing, without semantic retrieval.
        """
        try:
            listings = await self.get_listings()
        except BridgeError as e:
            self.logging.error("Could not enumerate listings for the chat context (%s): %s", e.kind, e.message)
            return NO_LISTINGS_CONTEXT
        if not listings:
            return NO_LISTINGS_CONTEXT
        return self.render_listings(listings)

    async def _do_query(self, query_text: str) -> list[VectorMatch]:
        vector_client = await self._vector_manager.get_client()
        try:
            return await vector_client.do_query_by_text(query_text, self._top_k)
        except NotSupportedError:
            if not self._embed_manager.is_configured():
                raise
        # vector-only store: embed the query ourselves
        embed_client = await self._embed_manager.get_client()
        vector = await embed_client.do_embed(query_text)
        return await vector_client.do_query(vector, self._top_k)

    async def _resolve_matches(self, matches: list[VectorMatch]) -> list[Listing]:
        listing_client = await self._listing_manager.get_client()
        seen: set[int] = set()
        listings = []
        for match in matches:
            if match.listing_id is None or match.listing_id in seen:
                continue
            seen.add(match.listing_id)
            listing = await listing_client.do_fetch_listing(match.listing_id)
            if listing is None or not self._is_eligible(listing, listing_client):
                self.logging.debug("Dropping match for listing #%s (missing or not published).", match.listing_id)
                continue
            listings.append(listing)
        return listings

    async def build_context(self, query_text: str) -> str:
        """Build the listings context for a visitor message.

        Queries the vector store for the top_k most relevant listings and renders
        the published ones. Falls back to fallback_context() when the vector store
        is not configured (without any network call), when the store cannot answer
        text queries and no embedding provider is configured, when any provider
        fails, or when no match survives filtering.

        Args:
            query_text (str): The visitor message.

        Returns:
            str: The rendered context block.
        """
        if not query_text.strip() or not self._vector_manager.is_configured():
            return await self.fallback_context()

        try:
            matches = await self._do_query(query_text)
            listings = await self._resolve_matches(matches)
        except NotSupportedError as e:
            self.logging.info("Semantic retrieval unavailable, using listing enumeration: %s", e.message)
            return await self.fallback_context()
        except BridgeError as e:
            self.logging.warning("Semantic retrieval failed (%s): %s. Using listing enumeration.", e.kind, e.message)
            return await self.fallback_context()

        if not listings:
            return await self.fallback_context()
        self.logging.debug("Built context from %d of %d matches.", len(listings), len(matches))
        return self.render_listings(listings)
