from starlette.requests import Request
from starlette.responses import Response
from starlette.staticfiles import StaticFiles

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class StaticAssetServer:
    """Serves the chat frontend from a local directory ('/' -> index.html)."""

    def __init__(self, directory: str = settings.STATIC_ASSETS_DIR):
        self.directory = directory
        self.files = StaticFiles(directory=directory, html=True, check_dir=False)
        logger.info(f"Serving static assets from {directory}")

    async def fetch(self, request: Request) -> Response:
        """Answer the original request from the asset directory"""
        path = self.files.get_path(request.scope)
        return await self.files.get_response(path, request.scope)
