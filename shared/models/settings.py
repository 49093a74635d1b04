"""Assistant settings record.

Flat key/value model. Provider settings follow the "<type>_<engine>_<key>"
naming so the client managers can slice out the bag of the selected engine.
"""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant for a business directory website. "
    "Answer questions about the listings available on this site."
)


class AssistantSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # chat backend
    llm_engine: str = "openai"
    llm_openai_api_key: str = ""
    llm_openai_base_url: str = "https://api.openai.com/v1"
    llm_ollama_base_url: str = ""
    llm_ollama_api_key: str = ""

    # chat behaviour
    chat_model: str = "gpt-3.5-turbo"
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=1000, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    site_name: str = ""
    chat_agent_name: str = ""
    chat_retrieval_instructions: bool = True

    # embedding backend
    embed_engine: str = "openai"
    embed_openai_api_key: str = ""
    embed_openai_model: str = "text-embedding-ada-002"
    embed_openai_base_url: str = "https://api.openai.com/v1"
    embed_ollama_base_url: str = ""
    embed_ollama_model: str = "nomic-embed-text"
    embed_ollama_api_key: str = ""

    # vector store backend
    vector_engine: str = "wpxplore"
    vector_wpxplore_api_base_url: str = ""
    vector_wpxplore_api_secret_key: str = ""
    vector_pinecone_api_key: str = ""
    vector_pinecone_environment: str = ""
    vector_pinecone_index_name: str = "directorist-listings"
    vector_pinecone_namespace: str = ""
    vector_qdrant_base_url: str = ""
    vector_qdrant_api_key: str = ""
    vector_qdrant_collection: str = "directorist-listings"

    # synchronisation
    vector_auto_sync: bool = False
    vector_sync_statuses: list[str] = []
    vector_sync_types: list[int] = []
    listing_chunk_size: int = Field(default=10, gt=0)
