from urllib.parse import quote

from shared.clients.errors import DataError
from shared.clients.vector.VectorClientInterface import VectorCapability, VectorClientInterface
from shared.clients.vector.models.VectorMatch import VectorMatch
from shared.clients.vector.models.VectorRecord import UpsertResult, VectorRecord
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


class VectorClientWpxplore(VectorClientInterface):
    """Hosted vector service that accepts raw text and embeds it server-side."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Wpxplore"

    def get_capabilities(self) -> set[VectorCapability]:
        return {VectorCapability.TEXT_QUERY, VectorCapability.VECTOR_QUERY, VectorCapability.SERVER_EMBEDDING}

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="api_base_url"),
            ProviderSetting(key="api_secret_key"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"X-API-Key": self.get_config_val("api_secret_key")}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.get_config_val("api_base_url")

    def _get_endpoint_upsert(self) -> str:
        return "/api/v1/vectors/upsert"

    def _get_endpoint_batch_upsert(self) -> str:
        return "/api/v1/vectors/batch-upsert"

    def _get_endpoint_delete(self, vector_id: str) -> str:
        return f"/api/v1/vectors/{quote(vector_id, safe='')}"

    def _get_endpoint_batch_delete(self) -> str:
        return "/api/v1/vectors/batch-delete"

    def _get_endpoint_query(self) -> str:
        return "/api/v1/vectors/query"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_record_payload(self, record: VectorRecord) -> dict:
        payload = {
            "post_id": record.listing_id,
            "text": record.text,
            "metadata": self.build_metadata(record),
        }
        if record.id:
            payload["vector_id"] = record.id
        if record.vector:
            payload["vector"] = record.vector
        return payload

    def get_query_payload(self, top_k: int, filter: dict | None, text: str | None = None, vector: list[float] | None = None) -> dict:
        payload: dict = {"top_k": self.validate_top_k(top_k)}
        if text is not None:
            payload["text"] = text
        if vector is not None:
            payload["vector"] = vector
        if filter:
            payload["filter"] = filter
        return payload

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @staticmethod
    def _extract_vector_id(data: dict) -> str | None:
        vector_id = data.get("vector_id") or data.get("id")
        return str(vector_id) if vector_id not in (None, "") else None

    def _to_upsert_result(self, record: VectorRecord, data: dict) -> UpsertResult:
        external_id = self._extract_vector_id(data) if isinstance(data, dict) else None
        return UpsertResult(
            listing_id=record.listing_id,
            external_id=external_id,
            reused=external_id is not None and external_id == record.id,
        )

    def _extract_results(self, data: dict) -> list[VectorMatch]:
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise DataError("Invalid response from vector storage API.")
        return [self.parse_match(raw) for raw in results if isinstance(raw, dict)]

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_upsert(self, record: VectorRecord) -> UpsertResult:
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_upsert(),
            json=self.get_record_payload(record),
        )
        return self._to_upsert_result(record, self.json_or_empty(response))

    async def do_batch_upsert(self, records: list[VectorRecord]) -> list[UpsertResult]:
        if not records:
            return []
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_batch_upsert(),
            json={"vectors": [self.get_record_payload(record) for record in records]},
        )
        data = self.json_or_empty(response)

        # the service may report the assigned ids per listing
        reported: dict[int, dict] = {}
        for item in (data.get("results") or []) if isinstance(data, dict) else []:
            listing_id = self.extract_listing_id(item) if isinstance(item, dict) else None
            if listing_id is not None:
                reported[listing_id] = item
        return [self._to_upsert_result(record, reported.get(record.listing_id, {})) for record in records]

    async def do_delete(self, vector_id: str) -> None:
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_delete(vector_id))

    async def do_batch_delete(self, vector_ids: list[str]) -> None:
        if not vector_ids:
            return
        await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_batch_delete(),
            json={"ids": vector_ids},
        )

    async def do_query(self, vector: list[float], top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_query(),
            json=self.get_query_payload(top_k, filter, vector=vector),
        )
        return self._extract_results(self.parse_json(response))

    async def do_query_by_text(self, text: str, top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_query(),
            json=self.get_query_payload(top_k, filter, text=text),
        )
        return self._extract_results(self.parse_json(response))
