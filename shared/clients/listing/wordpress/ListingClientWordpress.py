import base64
import html
from datetime import datetime
from typing import Any

from shared.clients.ClientInterface import extract_error_message
from shared.clients.errors import DataError, ProviderError
from shared.clients.listing.ListingClientInterface import ListingClientInterface
from shared.clients.listing.models.Listing import Listing, SyncMarker
from shared.clients.listing.models.ListingType import ListingStatus, ListingType
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting

# post meta keys
META_SYNCED = "_vector_sync"
META_SYNCED_AT = "_vector_sync_date"
META_EXTERNAL_ID = "_vector_external_id"
META_AI_BLOCK = "_ai_block"

SYNC_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ListingClientWordpress(ListingClientInterface):
    """
    Reads Directorist listings through the WordPress REST API.

    Post meta (sync markers, custom field values, AI block flag) must be exposed
    to the REST API ("show_in_rest") for the listing post type and the directory
    type taxonomy.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        # directory type id -> [(field_key, label), ...]
        self._form_fields: dict[int, list[tuple[str, str]]] = {}

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Wordpress"

    def get_post_type(self) -> str:
        return self.get_config_val("post_type")

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="base_url"),
            ProviderSetting(key="username", default="", required=False),
            ProviderSetting(key="app_password", default="", required=False),
            ProviderSetting(key="post_type", default="at_biz_dir"),
            ProviderSetting(key="type_taxonomy", default="at_biz_dir_types"),
            ProviderSetting(key="category_taxonomy", default="at_biz_dir-category"),
            ProviderSetting(key="location_taxonomy", default="at_biz_dir-location"),
            ProviderSetting(key="page_size", val_type="number", default=100),
        ]

    def _is_authenticated(self) -> bool:
        return bool(self.get_config_val("username") and self.get_config_val("app_password"))

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if not self._is_authenticated():
            return {}
        credentials = f"{self.get_config_val('username')}:{self.get_config_val('app_password')}"
        token = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {token}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return f"{self.get_config_val('base_url').rstrip('/')}/wp-json"

    def _get_endpoint_listings(self) -> str:
        return f"/wp/v2/{self.get_post_type()}"

    def _get_endpoint_listing_details(self, listing_id: int) -> str:
        return f"/wp/v2/{self.get_post_type()}/{listing_id}"

    def _get_endpoint_listing_types(self) -> str:
        return f"/wp/v2/{self.get_config_val('type_taxonomy')}"

    def _get_endpoint_listing_type_details(self, type_id: int) -> str:
        return f"/wp/v2/{self.get_config_val('type_taxonomy')}/{type_id}"

    def _get_endpoint_statuses(self) -> str:
        return "/wp/v2/statuses"

    def _get_listing_params(self) -> dict:
        params = {"_embed": "wp:term"}
        # drafts and post meta are only visible in the edit context
        if self._is_authenticated():
            params["context"] = "edit"
        return params

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @staticmethod
    def _parse_text(field: Any) -> str:
        if isinstance(field, dict):
            return str(field.get("raw") or field.get("rendered") or "")
        return str(field or "")

    @staticmethod
    def _parse_meta_value(value: Any) -> Any:
        # single meta values come back as one-element lists when registered without "single"
        if isinstance(value, list):
            return value[0] if len(value) == 1 else value
        return value

    def _parse_sync_marker(self, meta: dict) -> SyncMarker:
        synced_at = None
        raw_date = meta.get(META_SYNCED_AT)
        if raw_date:
            try:
                synced_at = datetime.strptime(str(raw_date), SYNC_DATE_FORMAT)
            except ValueError:
                self.logging.warning("Ignoring unparsable sync date '%s'.", raw_date)
        external_id = meta.get(META_EXTERNAL_ID)
        return SyncMarker(
            synced=str(meta.get(META_SYNCED) or "") in ("1", "true", "True"),
            synced_at=synced_at,
            external_vector_id=str(external_id) if external_id else None,
        )

    def _parse_term_names(self, response: dict) -> dict[str, list[str]]:
        names: dict[str, list[str]] = {}
        for group in (response.get("_embedded") or {}).get("wp:term", []):
            for term in group if isinstance(group, list) else []:
                if isinstance(term, dict) and term.get("taxonomy") and term.get("name"):
                    names.setdefault(term["taxonomy"], []).append(html.unescape(self._parse_text(term["name"])))
        return names

    def _parse_listing(self, response: dict) -> Listing:
        if not isinstance(response, dict) or "id" not in response:
            raise DataError("Invalid listing response from WordPress.")
        meta = {key: self._parse_meta_value(val) for key, val in (response.get("meta") or {}).items()}
        terms = self._parse_term_names(response)
        return Listing(
            id=int(response["id"]),
            title=self._parse_text(response.get("title")),
            content=self._parse_text(response.get("content")),
            post_type=response.get("type") or self.get_post_type(),
            status=response.get("status") or "",
            permalink=response.get("link") or None,
            type_ids=[int(type_id) for type_id in response.get(self.get_config_val("type_taxonomy"), []) or []],
            type_names=terms.get(self.get_config_val("type_taxonomy"), []),
            category_names=terms.get(self.get_config_val("category_taxonomy"), []),
            location_names=terms.get(self.get_config_val("location_taxonomy"), []),
            meta=meta,
            ai_blocked=str(meta.get(META_AI_BLOCK) or "") in ("1", "yes", "true", "on"),
            sync_marker=self._parse_sync_marker(meta),
        )

    @staticmethod
    def _parse_form_fields(term: dict) -> list[tuple[str, str]]:
        form = ((term.get("meta") or {}).get("submission_form_fields")) or {}
        fields = form.get("fields") if isinstance(form, dict) else None
        if isinstance(fields, dict):
            fields = list(fields.values())
        result = []
        for field in fields or []:
            if isinstance(field, dict) and field.get("field_key"):
                result.append((field["field_key"], field.get("label") or field["field_key"]))
        return result

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_fetch_all_pages(self, endpoint: str, params: dict) -> list[dict]:
        """Fetch every page of a collection endpoint, following X-WP-TotalPages."""
        items: list[dict] = []
        page = 1
        page_size = int(self.get_config_val("page_size"))
        while True:
            resp = await self.do_request(method="GET", endpoint=endpoint, params={**params, "page": page, "per_page": page_size})
            batch = self.parse_json(resp)
            if not isinstance(batch, list):
                raise DataError(f"Invalid collection response from WordPress for {endpoint}.")
            items.extend(batch)
            total_pages = int(resp.headers.get("X-WP-TotalPages", "1") or 1)
            self.logging.debug("Fetched page %d of %d from %s, %d items so far.", page, total_pages, endpoint, len(items))
            if page >= total_pages or not batch:
                return items
            page += 1

    async def do_fetch_listing(self, listing_id: int) -> Listing | None:
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_listing_details(listing_id),
            params=self._get_listing_params(),
            raise_on_error=False,
        )
        if resp.status_code in (404, 410):
            return None
        if not resp.is_success:
            raise ProviderError(extract_error_message(resp), status_code=resp.status_code)
        listing = self._parse_listing(self.parse_json(resp))
        listing.custom_fields = await self.do_fetch_custom_fields(listing)
        return listing

    async def do_fetch_listings(self, statuses: list[str] | None = None, type_ids: list[int] | None = None) -> list[Listing]:
        params = self._get_listing_params()
        if statuses:
            params["status"] = ",".join(statuses)
        elif self._is_authenticated():
            params["status"] = "any"
        if type_ids:
            params[self.get_config_val("type_taxonomy")] = ",".join(str(type_id) for type_id in type_ids)

        listings = []
        for raw in await self._do_fetch_all_pages(self._get_endpoint_listings(), params):
            listing = self._parse_listing(raw)
            listing.custom_fields = await self.do_fetch_custom_fields(listing)
            listings.append(listing)
        self.logging.info("Fetched %d listings from %s.", len(listings), self.get_engine_name())
        return listings

    async def _do_fetch_form_fields(self, type_id: int) -> list[tuple[str, str]]:
        if type_id not in self._form_fields:
            resp = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_listing_type_details(type_id),
                params={"context": "edit"} if self._is_authenticated() else None,
                raise_on_error=False,
            )
            if resp.status_code == 404:
                self._form_fields[type_id] = []
            elif not resp.is_success:
                raise ProviderError(extract_error_message(resp), status_code=resp.status_code)
            else:
                self._form_fields[type_id] = self._parse_form_fields(self.parse_json(resp))
        return self._form_fields[type_id]

    async def do_fetch_custom_fields(self, listing: Listing) -> dict[str, str]:
        if not listing.type_ids:
            return {}
        # the first directory type defines the form
        custom_fields = {}
        for field_key, label in await self._do_fetch_form_fields(listing.type_ids[0]):
            value = listing.meta.get(f"_{field_key}")
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value if v)
            if value:
                custom_fields[label] = str(value)
        return custom_fields

    async def do_fetch_listing_types(self) -> list[ListingType]:
        terms = await self._do_fetch_all_pages(self._get_endpoint_listing_types(), {"hide_empty": "false"})
        return [
            ListingType(id=int(term["id"]), name=html.unescape(self._parse_text(term.get("name"))), slug=term.get("slug") or "")
            for term in terms
            if isinstance(term, dict) and "id" in term
        ]

    async def do_fetch_listing_statuses(self) -> list[ListingStatus]:
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_statuses(),
            params={"context": "edit"} if self._is_authenticated() else None,
        )
        data = self.parse_json(resp)
        if not isinstance(data, dict):
            raise DataError("Invalid status response from WordPress.")
        return [
            ListingStatus(slug=slug, name=(status or {}).get("name") or slug)
            for slug, status in data.items()
        ]

    async def do_save_sync_marker(self, listing_id: int, marker: SyncMarker) -> None:
        meta = {
            META_SYNCED: "1" if marker.synced else "",
            META_SYNCED_AT: marker.synced_at.strftime(SYNC_DATE_FORMAT) if marker.synced_at else "",
            META_EXTERNAL_ID: marker.external_vector_id or "",
        }
        await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_listing_details(listing_id),
            json={"meta": meta},
        )
