"""Static file middlewares.

Three layers share the same file sender:

- public directory: files copied verbatim, no alias or access checks
- project root: alias-rewritten and checked against the serving policy
- raw filesystem: ``/@fs/`` URLs resolved from the OS root and checked

A restricted file is never answered with 403. The middleware hands the
request to the next handler, so the client gets the same 404 it would get
for a file that does not exist.
"""

import logging
from pathlib import Path

from aiohttp import web
from aiohttp.typedefs import Handler, Middleware
from yarl import URL

from devserve.constants import FS_PREFIX, IS_WINDOWS
from devserve.core.alias import AliasTable
from devserve.core.guard import AccessGuard
from devserve.core.paths import build_request_context, fs_path_from_url, normalize_path
from devserve.core.types import Eligibility
from devserve.core.urls import UrlClassifier, clean_url
from devserve.middlewares.sender import FileSender

logger = logging.getLogger(__name__)


def _with_url(request: web.Request, url: str) -> web.Request:
    """Clone the request with a new (decoded) path, keeping its query string."""
    return request.clone(
        rel_url=URL.build(path=clean_url(url), query_string=request.query_string)
    )


def serve_public_middleware(
    public_dir: Path,
    *,
    classifier: UrlClassifier | None = None,
) -> Middleware:
    """Serve files from the public directory as-is."""
    classifier = classifier or UrlClassifier()
    send = FileSender(public_dir)

    @web.middleware
    async def devserve_public_middleware(
        request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        url = request.raw_path
        if classifier.is_import_request(url) or classifier.is_internal_request(url):
            return await handler(request)
        return await send(request, handler)

    return devserve_public_middleware


def serve_static_middleware(
    root: Path,
    *,
    guard: AccessGuard,
    aliases: AliasTable | None = None,
    classifier: UrlClassifier | None = None,
) -> Middleware:
    """Serve files from the project root.

    Directory and ``.html`` requests are skipped so the HTML handler can
    process them. Aliases apply to static requests as well; a rewritten
    URL is committed to the request only once the target passed the guard.

    Args:
        root: Serving root
        guard: Access guard consulted for every resolved path
        aliases: Ordered alias rules
        classifier: Reserved URL categories
    """
    aliases = aliases or AliasTable()
    classifier = classifier or UrlClassifier()
    root_path = normalize_path(str(root))
    send = FileSender(root_path)

    @web.middleware
    async def devserve_static_middleware(
        request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        url = request.raw_path
        if classifier.classify(url, html_fallthrough=True) is Eligibility.SKIP:
            return await handler(request)

        context = build_request_context(url, root_path, aliases)
        if guard.is_restricted(context.file_path):
            logger.debug(f"Falling through for restricted {context.file_path}")
            return await handler(request)

        if context.resolved_alias_url is not None:
            request = _with_url(request, context.resolved_alias_url)

        return await send(request, handler)

    return devserve_static_middleware


def serve_raw_fs_middleware(
    *,
    guard: AccessGuard,
    windows: bool = IS_WINDOWS,
) -> Middleware:
    """Serve ``/@fs/`` URLs from the filesystem root.

    Files outside the serving root (e.g. in a linked monorepo package) are
    referenced through ``/@fs/<absolute path>``. On drive-letter platforms
    the drive is dropped and the path is served from the current drive.
    """
    send = FileSender("/")

    @web.middleware
    async def devserve_raw_fs_middleware(
        request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        url = request.raw_path
        if not url.startswith(FS_PREFIX):
            return await handler(request)

        file_path = fs_path_from_url(url, windows=windows)
        if guard.is_restricted(file_path):
            logger.debug(f"Falling through for restricted {file_path}")
            return await handler(request)

        return await send(_with_url(request, file_path), handler)

    return devserve_raw_fs_middleware
