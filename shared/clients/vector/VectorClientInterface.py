from abc import abstractmethod
from enum import Enum
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.errors import NotSupportedError
from shared.clients.vector.models.VectorMatch import VectorMatch
from shared.clients.vector.models.VectorRecord import UpsertResult, VectorRecord
from shared.helper.HelperConfig import HelperConfig

# metadata keys that may carry the source listing id
LISTING_ID_KEYS = ("post_id", "listing_id")


class VectorCapability(str, Enum):
    TEXT_QUERY = "text_query"
    VECTOR_QUERY = "vector_query"
    SERVER_EMBEDDING = "server_embedding"


class VectorClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def accepts_text(self) -> bool:
        """
        Returns True if the backend embeds raw text server-side, so no client vector is needed.
        """
        return VectorCapability.SERVER_EMBEDDING in self.get_capabilities()

    def supports(self, capability: VectorCapability) -> bool:
        return capability in self.get_capabilities()

    def validate_top_k(self, top_k: int) -> int:
        """
        Validates a requested result count and clamps it to the backend maximum.

        Raises:
            ValueError: If top_k is not a positive integer.
        """
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
            raise ValueError(f"top_k must be a positive integer, got {top_k!r}.")
        max_top_k = self.get_max_top_k()
        if max_top_k is not None and top_k > max_top_k:
            self.logging.debug("Clamping top_k %d to %s maximum %d.", top_k, self.get_engine_name(), max_top_k)
            return max_top_k
        return top_k

    def _require_vector(self, record: VectorRecord) -> list[float]:
        if not record.vector:
            raise ValueError(
                f"The {self.get_engine_name()} backend requires an embedding vector (listing {record.listing_id})."
            )
        return record.vector

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "vector"

    @abstractmethod
    def get_capabilities(self) -> set[VectorCapability]:
        """
        Returns the capability set of the backend.
        """
        pass

    def get_max_top_k(self) -> int | None:
        """
        Returns the largest top_k the backend accepts, None for no documented limit.
        """
        return None

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    @staticmethod
    def build_metadata(record: VectorRecord) -> dict[str, Any]:
        """
        Returns the record metadata with the listing id always present under "post_id".
        """
        metadata = dict(record.metadata)
        metadata["post_id"] = record.listing_id
        return metadata

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @staticmethod
    def extract_listing_id(raw: dict) -> int | None:
        """
        Reads the listing id of a raw hit, from a top-level key or the nested metadata/payload.

        Returns:
            int | None: The id coerced to int, None if absent or not numeric.
        """
        candidates = [raw]
        for nested_key in ("metadata", "payload"):
            nested = raw.get(nested_key)
            if isinstance(nested, dict):
                candidates.append(nested)
        for source in candidates:
            for key in LISTING_ID_KEYS:
                value = source.get(key)
                if value is None or value == "":
                    continue
                try:
                    return int(value)
                except (TypeError, ValueError):
                    continue
        return None

    def parse_match(self, raw: dict) -> VectorMatch:
        """
        Converts a raw hit into a VectorMatch.
        """
        metadata = raw.get("metadata")
        if not isinstance(metadata, dict):
            metadata = raw.get("payload") if isinstance(raw.get("payload"), dict) else {}
        score = raw.get("score", 0.0)
        return VectorMatch(
            id=str(raw.get("id", "")),
            score=float(score) if isinstance(score, (int, float)) else 0.0,
            listing_id=self.extract_listing_id(raw),
            metadata=metadata,
        )

    def json_or_empty(self, response: httpx.Response) -> Any:
        """
        Decodes a response body that may legitimately be empty.
        """
        if not response.content.strip():
            return {}
        return self.parse_json(response)

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_prepare(self, dimensions: int) -> None:
        """
        Prepares the backend for records of the given dimension (e.g. creates a collection).
        No-op unless a backend needs it.
        """
        return None

    @abstractmethod
    async def do_upsert(self, record: VectorRecord) -> UpsertResult:
        """
        Inserts a record or replaces the record with the same external id.

        Raises:
            TransportError | ProviderError | DataError: On backend failure.
        """
        pass

    @abstractmethod
    async def do_batch_upsert(self, records: list[VectorRecord]) -> list[UpsertResult]:
        """
        Upserts several records with one request.

        Returns:
            list[UpsertResult]: One result per record, in input order.
        """
        pass

    @abstractmethod
    async def do_delete(self, vector_id: str) -> None:
        """
        Deletes a record by external id.
        """
        pass

    @abstractmethod
    async def do_batch_delete(self, vector_ids: list[str]) -> None:
        """
        Deletes several records by external id.
        """
        pass

    @abstractmethod
    async def do_query(self, vector: list[float], top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        """
        Similarity query with a client-side vector.

        Returns:
            list[VectorMatch]: Matches in backend relevance order (descending).
        """
        pass

    async def do_query_by_text(self, text: str, top_k: int, filter: dict | None = None) -> list[VectorMatch]:
        """
        Similarity query with raw text, embedded by the backend.

        Raises:
            NotSupportedError: If the backend has no text query capability.
        """
        raise NotSupportedError(
            f"{self._get_engine_name()} does not support direct text queries. Use do_query() with an embedding vector."
        )
