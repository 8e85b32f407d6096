"""File transfer delegate.

Maps a request path onto a directory and answers with ``web.FileResponse``,
which takes care of ETag, Last-Modified, range and conditional requests.
Anything that is not a regular file inside the directory falls through to
the next handler.
"""

import re
from pathlib import Path

from aiohttp import web
from aiohttp.typedefs import Handler

from devserve.core.paths import is_within, normalize_path, resolve_file_path

# The .ts extension is registered as video/mp2t; in a dev server it is
# almost always TypeScript compiled for the browser
_SCRIPT_RE = re.compile(r"\.[tj]sx?$")


class FileSender:
    """Serves regular files below ``root`` for GET and HEAD requests."""

    def __init__(self, root: Path | str) -> None:
        self._root = normalize_path(str(root))

    @property
    def root(self) -> str:
        return self._root

    async def __call__(self, request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.method not in ("GET", "HEAD"):
            return await handler(request)

        file_path = resolve_file_path(request.path, self._root)
        if not is_within(file_path, self._root):
            return await handler(request)

        path = Path(file_path)
        if not path.is_file():
            return await handler(request)

        response = web.FileResponse(path)
        if _SCRIPT_RE.search(path.name):
            response.content_type = "application/javascript"
        return response
