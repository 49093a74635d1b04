"""Listing synchronisation service.

Keeps one vector record per eligible listing current in the configured
vector store. Text-capable stores receive the listing text and embed it
themselves; vector-only stores receive an embedding computed by the
configured embedding provider first.
"""

from datetime import datetime

import pytz

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.errors import BridgeError, NoEmbeddingError
from shared.clients.listing.ListingClientInterface import ListingClientInterface
from shared.clients.listing.ListingClientManager import ListingClientManager
from shared.clients.listing.models.Listing import Listing, SyncMarker
from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.VectorClientManager import VectorClientManager
from shared.clients.vector.models.VectorRecord import UpsertResult, VectorRecord
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import strip_html
from shared.models.sync import BulkSyncResult
from shared.settings.SettingsManager import SettingsManager

# statuses never synced, whatever the filters say
EXCLUDED_STATUSES = ("trash", "auto-draft", "inherit")


class SyncService:
    """Orchestrates the sync pipeline from the listing source to the vector store."""

    def __init__(
        self,
        helper_config: HelperConfig,
        settings_manager: SettingsManager,
        listing_manager: ListingClientManager,
        vector_manager: VectorClientManager,
        embed_manager: EmbedClientManager,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._tz = pytz.timezone(helper_config.get_string_val("TIMEZONE", default="Europe/Berlin"))
        self._settings_manager = settings_manager
        self._listing_manager = listing_manager
        self._vector_manager = vector_manager
        self._embed_manager = embed_manager

        # number of bulk runs in flight, auto sync is suppressed while any is running
        self._bulk_runs = 0

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def is_bulk_running(self) -> bool:
        return self._bulk_runs > 0

    def _passes_filters(self, listing: Listing) -> bool:
        settings = self._settings_manager.get_settings()
        if listing.status in EXCLUDED_STATUSES:
            return False
        if settings.vector_sync_statuses and listing.status not in settings.vector_sync_statuses:
            return False
        if settings.vector_sync_types and not set(listing.type_ids) & set(settings.vector_sync_types):
            return False
        return True

    def should_sync(self, listing: Listing) -> bool:
        """Decide whether a saved listing is synced automatically.

        True iff auto sync is enabled, no bulk run is in progress, the vector
        store is configured, the listing passes the status and type filters
        (an empty filter includes everything) and the listing is not AI-blocked.
        Makes no network call.

        Args:
            listing (Listing): The saved listing.

        Returns:
            bool: True if the listing should be upserted now.
        """
        if not self._settings_manager.get_settings().vector_auto_sync:
            return False
        if self.is_bulk_running():
            return False
        if listing.ai_blocked:
            return False
        if not self._passes_filters(listing):
            return False
        return self._vector_manager.is_configured()

    ##########################################
    ############ PAYLOAD BUILDER #############
    ##########################################

    @staticmethod
    def prepare_text(listing: Listing) -> str:
        """Render the text stored for a listing.

        Title, blank line, HTML-stripped body, blank line, then one
        "Label: Value" line per non-empty custom field.
        """
        text = f"{strip_html(listing.title)}\n\n{strip_html(listing.content)}"
        fields = "\n".join(f"{label}: {value}" for label, value in listing.custom_fields.items() if str(value).strip())
        if fields:
            text += f"\n\n{fields}"
        return text.strip()

    @staticmethod
    def prepare_metadata(listing: Listing) -> dict:
        metadata = {
            "post_id": listing.id,
            "category": ", ".join(listing.category_names),
            "type": ", ".join(listing.type_names),
            "status": listing.status,
        }
        if listing.location_names:
            metadata["location"] = ", ".join(listing.location_names)
        if listing.ai_blocked:
            metadata["ai_block"] = True
        return metadata

    def _build_record(self, listing: Listing, listing_client: ListingClientInterface) -> VectorRecord:
        marker = listing_client.get_sync_marker(listing)
        return VectorRecord(
            id=marker.external_vector_id,
            listing_id=listing.id,
            text=self.prepare_text(listing),
            metadata=self.prepare_metadata(listing),
        )

    def _synced_marker(self, previous: SyncMarker, result: UpsertResult) -> SyncMarker:
        return SyncMarker(
            synced=True,
            synced_at=datetime.now(self._tz).replace(microsecond=0, tzinfo=None),
            external_vector_id=result.external_id or previous.external_vector_id,
        )

    async def _get_embed_client(self, vector_client: VectorClientInterface) -> EmbedClientInterface | None:
        """Return the embedding client if the store needs client-side vectors, preparing the store for its size."""
        if vector_client.accepts_text():
            return None
        embed_client = await self._embed_manager.get_client()
        await vector_client.do_prepare(embed_client.get_dimensions())
        return embed_client

    ##########################################
    ############## SINGLE SYNC ###############
    ##########################################

    async def do_upsert_listing(self, listing: Listing) -> SyncMarker:
        """Upsert one listing into the vector store and update its sync marker.

        The stored external id is reused. For vector-only stores the listing is
        embedded first, and an embedding failure aborts before the store is
        called. Single attempt, no retry.

        Args:
            listing (Listing): The listing to sync.

        Returns:
            SyncMarker: The updated marker.

        Raises:
            BridgeError: If a provider fails. The sync marker is left unchanged.
        """
        listing_client = await self._listing_manager.get_client()
        vector_client = await self._vector_manager.get_client()
        previous = listing_client.get_sync_marker(listing)
        record = self._build_record(listing, listing_client)

        embed_client = await self._get_embed_client(vector_client)
        if embed_client is not None:
            record.vector = await embed_client.do_embed(record.text)

        result = await vector_client.do_upsert(record)
        marker = self._synced_marker(previous, result)
        await listing_client.do_save_sync_marker(listing.id, marker)
        listing.sync_marker = marker
        self.logging.info(
            "Synced listing #%d to %s (external id: %s, reused: %s).",
            listing.id, vector_client.get_engine_name(), marker.external_vector_id, result.reused,
        )
        return marker

    async def handle_listing_saved(self, listing_id: int) -> bool:
        """Save hook: sync a listing if it is eligible for auto sync.

        No AI provider is contacted unless should_sync() holds for the listing.
        Provider errors are logged and reported as False.

        Returns:
            bool: True if the listing was synced.
        """
        try:
            listing_client = await self._listing_manager.get_client()
            listing = await listing_client.do_fetch_listing(listing_id)
            if listing is None:
                self.logging.warning("Listing #%d not found, nothing to sync.", listing_id)
                return False
            if not self.should_sync(listing):
                self.logging.debug("Listing #%d is not eligible for auto sync.", listing_id)
                return False
            await self.do_upsert_listing(listing)
            return True
        except BridgeError as e:
            self.logging.error("Auto sync of listing #%d failed (%s): %s", listing_id, e.kind, e.message)
            return False

    async def do_remove_listing(self, listing_id: int) -> bool:
        """Delete the vector record of a listing and reset its sync marker.

        Used when a listing is trashed or blocked from AI.

        Returns:
            bool: True if a stored record was deleted.
        """
        try:
            listing_client = await self._listing_manager.get_client()
            listing = await listing_client.do_fetch_listing(listing_id)
            if listing is None:
                return False
            external_id = listing_client.get_sync_marker(listing).external_vector_id
            if not external_id or not self._vector_manager.is_configured():
                return False
            vector_client = await self._vector_manager.get_client()
            await vector_client.do_delete(external_id)
            await listing_client.do_save_sync_marker(listing.id, SyncMarker())
            self.logging.info("Removed vector record %s of listing #%d.", external_id, listing_id)
            return True
        except BridgeError as e:
            self.logging.error("Removing listing #%d from the vector store failed (%s): %s", listing_id, e.kind, e.message)
            return False

    ##########################################
    ############### BULK SYNC ################
    ##########################################

    async def _resolve_listings(
        self,
        listing_client: ListingClientInterface,
        listing_ids: list[int],
        errors: list[str],
    ) -> list[Listing]:
        """Resolve the listings of a bulk run. Unresolvable ids are recorded in errors."""
        if not listing_ids:
            settings = self._settings_manager.get_settings()
            listings = await listing_client.do_fetch_listings(
                statuses=settings.vector_sync_statuses or None,
                type_ids=settings.vector_sync_types or None,
            )
            return [listing for listing in listings if not listing.ai_blocked and self._passes_filters(listing)]

        listings = []
        for listing_id in listing_ids:
            try:
                listing = await listing_client.do_fetch_listing(listing_id)
            except BridgeError as e:
                errors.append(f"Listing #{listing_id}: {e.message}")
                continue
            if listing is None:
                errors.append(f"Listing #{listing_id} not found.")
            elif listing.ai_blocked:
                errors.append(f"Listing #{listing_id} is blocked from AI.")
            else:
                listings.append(listing)
        return listings

    async def _sync_chunk(
        self,
        chunk: list[Listing],
        listing_client: ListingClientInterface,
        vector_client: VectorClientInterface,
        embed_client: EmbedClientInterface | None,
        errors: list[str],
    ) -> int:
        """Sync one chunk with one batch embed and one batch upsert.

        Returns:
            int: The number of listings synced successfully.
        """
        records = [self._build_record(listing, listing_client) for listing in chunk]
        try:
            if embed_client is not None:
                vectors = await embed_client.do_batch_embed([record.text for record in records])
                if len(vectors) != len(records):
                    raise NoEmbeddingError(f"Expected {len(records)} embeddings, got {len(vectors)}.")
                for record, vector in zip(records, vectors):
                    record.vector = vector
            results = await vector_client.do_batch_upsert(records)
        except (BridgeError, ValueError) as e:
            message = e.message if isinstance(e, BridgeError) else str(e)
            self.logging.error("Chunk of %d listings failed: %s", len(chunk), message)
            errors.extend(f"Listing #{listing.id}: {message}" for listing in chunk)
            return 0

        synced = 0
        for listing, result in zip(chunk, results):
            marker = self._synced_marker(listing_client.get_sync_marker(listing), result)
            try:
                await listing_client.do_save_sync_marker(listing.id, marker)
            except BridgeError as e:
                errors.append(f"Listing #{listing.id}: could not store sync marker: {e.message}")
                continue
            listing.sync_marker = marker
            synced += 1
        return synced

    async def do_batch_upsert(self, listing_ids: list[int] | None = None) -> BulkSyncResult:
        """Sync many listings in sequential chunks of the "listing_chunk_size" setting.

        An empty id list means all listings passing the sync filters. Individual
        failures never abort the run; one error message is collected per failed
        listing.

        Args:
            listing_ids (list[int] | None): The listings to sync.

        Returns:
            BulkSyncResult: Aggregate counts, success + failed == total.
        """
        self._bulk_runs += 1
        try:
            return await self._do_batch_upsert(list(dict.fromkeys(listing_ids or [])))
        finally:
            self._bulk_runs -= 1

    async def _do_batch_upsert(self, listing_ids: list[int]) -> BulkSyncResult:
        errors: list[str] = []
        try:
            listing_client = await self._listing_manager.get_client()
            listings = await self._resolve_listings(listing_client, listing_ids, errors)
        except BridgeError as e:
            self.logging.error("Could not resolve listings for bulk sync: %s", e.message)
            total = len(listing_ids)
            return BulkSyncResult(status="failed", total=total, failed=total, errors=[e.message], message=e.message)

        total = len(listing_ids) if listing_ids else len(listings)
        if total == 0:
            return BulkSyncResult(status="failed", message="No listings found to sync.")

        success = 0
        if listings:
            try:
                vector_client = await self._vector_manager.get_client()
                embed_client = await self._get_embed_client(vector_client)
            except BridgeError as e:
                self.logging.error("Bulk sync aborted, providers unavailable: %s", e.message)
                errors.extend(f"Listing #{listing.id}: {e.message}" for listing in listings)
                listings = []

            chunk_size = self._settings_manager.get_settings().listing_chunk_size
            for start in range(0, len(listings), chunk_size):
                chunk = listings[start:start + chunk_size]
                self.logging.info("Syncing listings %d-%d of %d...", start + 1, start + len(chunk), len(listings))
                success += await self._sync_chunk(chunk, listing_client, vector_client, embed_client, errors)

        failed = total - success
        if failed == 0:
            status = "success"
        elif success == 0:
            status = "failed"
        else:
            status = "partial"
        message = f"Synced {success} of {total} listings."
        if failed:
            message += f" {failed} failed."
        self.logging.info("Bulk sync finished: %s", message, color="green" if failed == 0 else "yellow")
        return BulkSyncResult(status=status, total=total, success=success, failed=failed, errors=errors, message=message)
