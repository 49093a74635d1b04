"""FastAPI application entry point for listing_ai_bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.settings.SettingsManager import SettingsManager
from shared.clients.errors import BridgeError, get_status_code
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.vector.VectorClientManager import VectorClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.listing.ListingClientManager import ListingClientManager
from services.listing_sync.SyncService import SyncService
from server.core.ContextService import ContextService
from server.core.ChatService import ChatService
from server.routers.SettingsRouter import router as settings_router
from server.routers.ChatRouter import router as chat_router
from server.routers.ListingRouter import router as listing_router
from server.routers.SyncRouter import router as sync_router
from server.routers.ProviderRouter import router as provider_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


def init_state(app: FastAPI, helper_config: HelperConfig) -> None:
    """Create the settings store, provider managers and services on app.state."""
    app.state.logging = helper_config.get_logger()
    app.state.helper_config = helper_config
    app.state.settings_manager = SettingsManager(helper_config=helper_config, file_path=helper_config.get_settings_file())

    app.state.listing_manager = ListingClientManager(helper_config=helper_config)
    app.state.provider_managers = {
        "embed": EmbedClientManager(helper_config=helper_config, settings_manager=app.state.settings_manager),
        "vector": VectorClientManager(helper_config=helper_config, settings_manager=app.state.settings_manager),
        "llm": LLMClientManager(helper_config=helper_config, settings_manager=app.state.settings_manager),
    }

    app.state.sync_service = SyncService(
        helper_config=helper_config,
        settings_manager=app.state.settings_manager,
        listing_manager=app.state.listing_manager,
        vector_manager=app.state.provider_managers["vector"],
        embed_manager=app.state.provider_managers["embed"],
    )
    app.state.context_service = ContextService(
        helper_config=helper_config,
        listing_manager=app.state.listing_manager,
        vector_manager=app.state.provider_managers["vector"],
        embed_manager=app.state.provider_managers["embed"],
    )
    app.state.chat_service = ChatService(
        helper_config=helper_config,
        settings_manager=app.state.settings_manager,
        llm_manager=app.state.provider_managers["llm"],
        context_service=app.state.context_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    init_state(app, HelperConfig(logger=logging))
    check_configuration(app)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for manager in [app.state.listing_manager, *app.state.provider_managers.values()]:
        await manager.close()
    logging.info("All clients closed.")


def check_configuration(app: FastAPI) -> None:
    """Log which providers are usable on startup.

    Missing configuration is never fatal: settings can be completed at runtime
    via POST /settings, and chat falls back to listing enumeration without a
    vector store.
    """
    if not app.state.listing_manager.is_configured():
        logging.warning("Listing source is not configured (LISTING_WORDPRESS_BASE_URL). Listing routes will fail.")
    for provider_type, manager in app.state.provider_managers.items():
        if manager.is_configured():
            logging.info("%s provider configured.", provider_type.capitalize(), color="green")
        else:
            logging.warning("%s provider is not configured yet.", provider_type.capitalize())


app = FastAPI(
    title="listing_ai_bridge",
    description=(
        "AI assistant middleware for directory listing websites (WordPress + Directorist). "
        "Listings are synced into a vector store (POST /bulk-sync, POST /webhook/listing) "
        "and visitor questions are answered with retrieval-augmented context via POST /chat."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BridgeError)
async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    """Map provider errors to a short response without provider payloads."""
    status_code = get_status_code(exc.kind)
    logging.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=status_code, content={"success": False, "error_kind": exc.kind, "message": exc.message})


app.include_router(settings_router)
app.include_router(chat_router)
app.include_router(listing_router)
app.include_router(sync_router)
app.include_router(provider_router)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting listing_ai_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
