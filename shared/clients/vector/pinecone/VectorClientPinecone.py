from shared.clients.vector.VectorClientInterface import VectorCapability, VectorClientInterface
from shared.clients.vector.models.VectorMatch import VectorMatch
from shared.clients.vector.models.VectorRecord import UpsertResult, VectorRecord
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import ProviderSetting


class VectorClientPinecone(VectorClientInterface):
    """Pinecone index. Requires client-side vectors and has no text query."""

    MAX_TOP_K = 10000

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Pinecone"

    def get_capabilities(self) -> set[VectorCapability]:
        return {VectorCapability.VECTOR_QUERY}

    def get_max_top_k(self) -> int | None:
        return self.MAX_TOP_K

    @staticmethod
    def make_vector_id(listing_id: int) -> str:
        return f"listing-{listing_id}"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[ProviderSetting]:
        return [
            ProviderSetting(key="api_key"),
            ProviderSetting(key="environment"),
            ProviderSetting(key="index_name"),
            ProviderSetting(key="namespace", default="", required=False),
            # explicit index host, overrides the legacy {index}-{environment} host
            ProviderSetting(key="host", default="", required=False),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Api-Key": self.get_config_val("api_key")}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        host = self.get_config_val("host")
        if host:
            return host if host.startswith("http") else f"https://{host}"
        index_name = self.get_config_val("index_name")
        environment = self.get_config_val("environment")
        return f"https://{index_name}-{environment}.svc.pinecone.io"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def _with_namespace(self, payload: dict) -> dict:
        namespace = self.get_config_val("namespace")
        if namespace:
            payload["namespace"] = namespace
        return payload

    def get_vector_payload(self, record: VectorRecord) -> dict:
        return {
            "id": record.id or self.make_vector_id(record.listing_id),
            "values": self._require_vector(record),
            "metadata": self.build_metadata(record),
        }

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_upsert(self, record: VectorRecord) -> UpsertResult:
        return (await self.do_batch_upsert([record]))[0]

    async def do_batch_upsert(self, records: list[VectorRecord]) -> list[UpsertResult]:
        if not records:
            return []
        vectors = [self.get_vector_payload(record) for record in records]
        await self.do_request(
            method="POST",
            endpoint="/vectors/upsert",
            json=self._with_namespace({"vectors": vectors}),
        )
        # pinecone ids are chosen by the caller, so the sent id is the stored id
        return [
            UpsertResult(listing_id=record.listing_id, external_id=vector["id"], reused=record.id is not None)
            for record, vector in zip(records, vectors)
        ]

    async def do_delete(self, vector_id: str) -> None:
        await self.do_batch_delete([vector_id])

    async def do_batch_delete(self, vector_ids: list[str]) -> None:
        if not vector_ids:
            return
        await self.do_request(
            method="POST",
            endpoint="/vectors/delete",
            json=self._with_namespace({"ids": vector_ids}),
        )

    async def do_query(self, vector: list[float], top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        body = {
            "vector": vector,
            "topK": self.validate_top_k(top_k),
            "includeMetadata": True,
        }
        if filter:
            body["filter"] = filter
        response = await self.do_request(method="POST", endpoint="/query", json=self._with_namespace(body))
        data = self.parse_json(response)
        matches = data.get("matches") if isinstance(data, dict) else None
        return [self.parse_match(raw) for raw in (matches or []) if isinstance(raw, dict)]
