"""aiohttp server for devserve.

Application factory and middleware wiring for the development server.
"""

from pathlib import Path

from aiohttp import web

from devserve.app_keys import (
    aliases_key,
    config_key,
    guard_key,
    root_key,
    server_logger_key,
)
from devserve.config import Config
from devserve.core.alias import AliasTable
from devserve.core.guard import AccessGuard
from devserve.core.paths import build_request_context, is_within, normalize_path
from devserve.core.types import SafePathSet
from devserve.core.urls import UrlClassifier
from devserve.logger import ServerLogger
from devserve.middlewares import (
    serve_public_middleware,
    serve_raw_fs_middleware,
    serve_static_middleware,
)


async def html_fallback(request: web.Request) -> web.FileResponse:
    """Serve HTML pages and directory indexes skipped by the static middleware.

    Goes through the same alias and access checks as static files, so a
    restricted page is answered with the same 404 as a missing one.
    """
    root = request.app[root_key]
    context = build_request_context(
        request.raw_path, root, request.app[aliases_key]
    )
    file_path = context.file_path
    if context.is_directory_request:
        file_path = f"{file_path}index.html"

    if not file_path.endswith(".html") or not is_within(file_path, root):
        raise web.HTTPNotFound()
    if request.app[guard_key].is_restricted(file_path):
        raise web.HTTPNotFound()

    path = Path(file_path)
    if not path.is_file():
        raise web.HTTPNotFound()
    return web.FileResponse(path)


def create_app(config: Config, *, safe_paths: SafePathSet | None = None) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        safe_paths: Files resolved by the module graph, exempt from the
            allow list check

    Returns:
        Configured aiohttp application
    """
    root = normalize_path(str(config.root))
    server_logger = ServerLogger()
    guard = AccessGuard(config.serving_policy(), safe_paths, server_logger)
    aliases = AliasTable(config.resolve.alias)
    classifier = UrlClassifier()

    middlewares = []
    public_dir = config.serve.public_dir
    if public_dir is not None and public_dir.is_dir():
        middlewares.append(serve_public_middleware(public_dir.resolve(), classifier=classifier))
    middlewares.append(serve_raw_fs_middleware(guard=guard))
    middlewares.append(
        serve_static_middleware(
            Path(root), guard=guard, aliases=aliases, classifier=classifier
        )
    )

    app = web.Application(middlewares=middlewares)
    app[config_key] = config
    app[guard_key] = guard
    app[aliases_key] = aliases
    app[server_logger_key] = server_logger
    app[root_key] = root

    # HTML fallback - must be last to catch everything the middlewares passed on
    app.router.add_get("/{path:.*}", html_fallback)

    app.on_cleanup.append(_clear_warnings)

    return app


async def _clear_warnings(app: web.Application) -> None:
    """Forget emitted warnings so a restarted server reports them again."""
    app[server_logger_key].registry.clear()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    web.run_app(app, host=config.server.host, port=config.server.port)
