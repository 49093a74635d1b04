from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.listing.models.Listing import PUBLISHED_STATUS, Listing, SyncMarker
from shared.clients.listing.models.ListingType import ListingStatus, ListingType
from shared.helper.HelperConfig import HelperConfig


class ListingClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "listing"

    @abstractmethod
    def get_post_type(self) -> str:
        """
        Returns the post type of directory listings (e.g. "at_biz_dir").
        """
        pass

    def get_sync_marker(self, listing: Listing) -> SyncMarker:
        """
        Returns the sync marker read together with the listing.
        """
        return listing.sync_marker

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_fetch_listing(self, listing_id: int) -> Listing | None:
        """
        Fetches a single listing including its custom fields.

        Args:
            listing_id (int): The listing id.

        Returns:
            Listing | None: The listing, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def do_fetch_listings(self, statuses: list[str] | None = None, type_ids: list[int] | None = None) -> list[Listing]:
        """
        Fetches all listings, optionally filtered by status and directory type.

        Args:
            statuses (list[str] | None): Statuses to include, None or empty for all.
            type_ids (list[int] | None): Directory type ids to include, None or empty for all.

        Returns:
            list[Listing]: All matching listings, across all pages.
        """
        pass

    async def do_fetch_published(self) -> list[Listing]:
        """
        Fetches all published listings.
        """
        return await self.do_fetch_listings(statuses=[PUBLISHED_STATUS])

    @abstractmethod
    async def do_fetch_custom_fields(self, listing: Listing) -> dict[str, str]:
        """
        Resolves the custom field values of a listing against the form fields of its directory type.

        Returns:
            dict[str, str]: Label to value, in form order. Empty values are omitted.
        """
        pass

    @abstractmethod
    async def do_fetch_listing_types(self) -> list[ListingType]:
        """
        Fetches all directory types.
        """
        pass

    @abstractmethod
    async def do_fetch_listing_statuses(self) -> list[ListingStatus]:
        """
        Fetches all statuses a listing can be in.
        """
        pass

    @abstractmethod
    async def do_save_sync_marker(self, listing_id: int, marker: SyncMarker) -> None:
        """
        Persists the sync marker of a listing.
        """
        pass
