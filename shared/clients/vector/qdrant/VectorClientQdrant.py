import uuid

from shared.clients.errors import DataError
from shared.clients.vector.VectorClientInterface import VectorCapability, VectorClientInterface
from shared.clients.vector.models.VectorMatch import VectorMatch
from shared.clients.vector.models.VectorRecord import UpsertResult, VectorRecord
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


def make_point_id(listing_id: int) -> str:
    """Build a deterministic UUID5 point ID for a listing.

    Using UUID5 ensures the same listing always maps to the same point ID
    so that re-syncing overwrites rather than duplicates.
    """
    return str(uuid.uuid5(uuid.NAMESPACE_OID, f"listing:{listing_id}"))


class VectorClientQdrant(VectorClientInterface):
    """Qdrant collection. Requires client-side vectors and has no text query."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._collection_ready = False

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_capabilities(self) -> set[VectorCapability]:
        return {VectorCapability.VECTOR_QUERY}

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="base_url"),
            ProviderSetting(key="collection"),
            ProviderSetting(key="api_key", default="", required=False),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        api_key = self.get_config_val("api_key")
        if api_key:
            return {"api-key": api_key}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.get_config_val("base_url")

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self.get_config_val('collection')}"

    def _get_endpoint_points(self) -> str:
        return f"{self._get_endpoint_collection()}/points"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_point_payload(self, record: VectorRecord) -> dict:
        payload = self.build_metadata(record)
        payload["text"] = record.text
        return {
            "id": record.id or make_point_id(record.listing_id),
            "vector": self._require_vector(record),
            "payload": payload,
        }

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_prepare(self, dimensions: int) -> None:
        """Create the collection (cosine distance) if it does not exist yet."""
        if self._collection_ready:
            return
        response = await self.do_request(method="GET", endpoint=f"{self._get_endpoint_collection()}/exists")
        exists = (self.parse_json(response).get("result") or {}).get("exists")
        if not exists:
            self.logging.info("Creating Qdrant collection '%s' (size=%d).", self.get_config_val("collection"), dimensions)
            await self.do_request(
                method="PUT",
                endpoint=self._get_endpoint_collection(),
                json={"vectors": {"size": dimensions, "distance": "Cosine"}},
            )
        self._collection_ready = True

    async def do_upsert(self, record: VectorRecord) -> UpsertResult:
        return (await self.do_batch_upsert([record]))[0]

    async def do_batch_upsert(self, records: list[VectorRecord]) -> list[UpsertResult]:
        if not records:
            return []
        points = [self.get_point_payload(record) for record in records]
        await self.do_request(
            method="PUT",
            endpoint=self._get_endpoint_points(),
            params={"wait": "true"},
            json={"points": points},
        )
        return [
            UpsertResult(listing_id=record.listing_id, external_id=str(point["id"]), reused=record.id is not None)
            for record, point in zip(records, points)
        ]

    async def do_delete(self, vector_id: str) -> None:
        await self.do_batch_delete([vector_id])

    async def do_batch_delete(self, vector_ids: list[str]) -> None:
        if not vector_ids:
            return
        await self.do_request(
            method="POST",
            endpoint=f"{self._get_endpoint_points()}/delete",
            params={"wait": "true"},
            json={"points": vector_ids},
        )

    async def do_query(self, vector: list[float], top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        body = {
            "vector": vector,
            "limit": self.validate_top_k(top_k),
            "with_payload": True,
        }
        if filter:
            body["filter"] = filter
        response = await self.do_request(method="POST", endpoint=f"{self._get_endpoint_points()}/search", json=body)
        data = self.parse_json(response)
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            raise DataError("Invalid search response from Qdrant.")
        return [self.parse_match(raw) for raw in result if isinstance(raw, dict)]
