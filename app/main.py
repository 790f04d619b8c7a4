from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_error_handlers
from app.api.routes import career
from app.api.routes.static import SinglePageStaticFiles, build_static_router
from app.core.config import ServerConfig, SmtpConfig
from app.utils.logging import logger


def _base_app(title: str, description: str, server_config: ServerConfig) -> FastAPI:
    app = FastAPI(title=title, version="1.0.0", description=description)
    app.state.server_config = server_config

    # Allow any frontend to call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["system"])
    def health_check():
        return {"status": "ok"}

    return app


def create_static_app(server_config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Plain static server: files under the root, 404 on anything else.
    """
    server_config = server_config or ServerConfig.from_env()
    app = _base_app(
        "Static Site",
        "Serves the site's files; unknown paths return 404.",
        server_config,
    )
    app.include_router(build_static_router())
    return app


def create_app(
    server_config: Optional[ServerConfig] = None,
    smtp_config: Optional[SmtpConfig] = None,
) -> FastAPI:
    """
    Application factory for the site with the career form.

    Configuration is read from the environment unless given explicitly
    (tests pass their own). Unknown paths fall back to the index file.
    """
    server_config = server_config or ServerConfig.from_env()
    app = _base_app(
        "Career Site",
        "Static site with a career application form relayed by email.",
        server_config,
    )
    app.state.smtp_config = smtp_config or SmtpConfig.from_env()

    register_error_handlers(app)
    app.include_router(career.router)
    # Catch-all, keep last
    app.mount(
        "/",
        SinglePageStaticFiles(directory=server_config.static_root, index_file=server_config.index_file),
        name="static",
    )
    return app


def _serve(application: FastAPI) -> None:
    port = application.state.server_config.port
    logger.info(f"Server running at http://localhost:{port}")
    uvicorn.run(application, host="0.0.0.0", port=port)


def run() -> None:
    _serve(app)


def run_static() -> None:
    _serve(create_static_app())


# Create the FastAPI app instance (uvicorn: `uvicorn app.main:app`)
app = create_app()
