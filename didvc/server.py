from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from didvc.api.credentials import router as credentials_router
from didvc.api.did import router as did_router
from didvc.config import Settings, settings as default_settings
from didvc.credentials import CredentialEngine
from didvc.did import DIDResolver
from didvc.keys import KeyManager
from didvc.logging import get_logger, request_id_middleware
from didvc.store.crud import CredentialStore

logger = get_logger(__name__)

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Creates and configures the FastAPI application instance.

    Builds the key manager, DID resolver, credential store and engine from
    `app_settings` (the shared settings by default). The key pair is loaded or
    generated in the application lifespan, so it is ready before the first
    request is served.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app_settings = app_settings or default_settings

    key_manager = KeyManager(app_settings.key_dir)
    resolver = DIDResolver(key_manager, app_settings.base_url)
    store = CredentialStore.from_url(app_settings.database_url)
    engine = CredentialEngine(key_manager, resolver, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        key_manager.initialize()
        logger.info(f"Issuer DID: {resolver.self_did()}")
        yield

    app = FastAPI(
        title=app_settings.app_name,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.key_manager = key_manager
    app.state.resolver = resolver
    app.state.engine = engine

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Middleware to add a unique request ID to each incoming request and log it."""
        request_id: str = request_id_middleware(request)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(credentials_router)
    app.include_router(did_router)

    @app.get("/health", tags=["Health Check"])
    async def health_check():
        logger.info("Health check endpoint was called.")
        return {
            "status": "ok",
            "app_name": app_settings.app_name,
            "did": resolver.self_did(),
            "persistent_keys": key_manager.persistent,
        }

    return app

app = create_app()
