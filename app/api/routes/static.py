from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from app.core.config import ServerConfig
from app.services.static_service import (
    StaticFileNotFound,
    content_type_for,
    read_static_file,
    resolve_static_path,
)


class SinglePageStaticFiles(StaticFiles):
    """
    Starlette's static files app, answering misses with the index file.

    Client-side routes of a single-page app ("/careers/frontend-engineer")
    then still load the app. If the index itself is missing the 404 stands.
    """

    def __init__(self, *, directory, index_file: str = "index.html", **kwargs):
        super().__init__(directory=directory, html=False, **kwargs)
        self.index_file = index_file

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            response = await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
        else:
            if response.status_code != 404:
                return response
        return await super().get_response(self.index_file, scope)


def build_static_router() -> APIRouter:
    """
    Catch-all GET route serving files from the configured root, 404 on a miss.

    Content types come from the fixed MIME table. Must be included last: it
    matches every path.
    """
    router = APIRouter(tags=["static"])

    @router.get("/{full_path:path}", include_in_schema=False)
    async def serve_static(full_path: str, request: Request):
        config: ServerConfig = request.app.state.server_config
        path = resolve_static_path(config.static_root, "/" + full_path, config.index_file)
        try:
            if path is None:
                raise StaticFileNotFound(full_path)
            body = await read_static_file(path)
        except StaticFileNotFound:
            return PlainTextResponse("Not found", status_code=404)
        return Response(content=body, media_type=content_type_for(path))

    return router
