from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from app.api.assets import StaticAssetServer
from app.api.routes.chat import handle_chat
from app.api.routing import RouteOutcome, resolve_route
from app.core.config import settings, Settings
from app.core.logging import log_startup_info, log_shutdown_info, get_logger
from app.services.chat_service import ChatService, get_chat_service

logger = get_logger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    config: Settings = settings,
    chat_service: Optional[ChatService] = None,
    assets: Optional[StaticAssetServer] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to route and serve with
        chat_service: Chat service (process-wide instance if None)
        assets: Static asset collaborator (serves STATIC_ASSETS_DIR if None)
    """
    # Every path is owned by the router below, so the generated docs stay off
    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.chat_service = chat_service or get_chat_service()
    app.state.assets = assets or StaticAssetServer(config.STATIC_ASSETS_DIR)

    @app.on_event("startup")
    async def startup_event():
        log_startup_info()
        logger.info("Application startup completed")

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.chat_service.aclose()
        log_shutdown_info()

    @app.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def dispatch(request: Request, full_path: str):
        outcome = resolve_route(
            request.method,
            request.url.path,
            api_prefix=config.API_PREFIX,
            chat_endpoint=config.CHAT_ENDPOINT,
        )

        if outcome is RouteOutcome.STATIC_PASSTHROUGH:
            return await app.state.assets.fetch(request)
        if outcome is RouteOutcome.CHAT_POST:
            return await handle_chat(request, app.state.chat_service)
        if outcome is RouteOutcome.METHOD_NOT_ALLOWED:
            return PlainTextResponse("Method not allowed", status_code=405)
        return PlainTextResponse("Not found", status_code=404)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )
