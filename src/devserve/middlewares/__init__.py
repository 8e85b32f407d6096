"""aiohttp middlewares for static, public and raw filesystem serving."""

from devserve.middlewares.static import (
    serve_public_middleware,
    serve_raw_fs_middleware,
    serve_static_middleware,
)

__all__ = [
    "serve_public_middleware",
    "serve_raw_fs_middleware",
    "serve_static_middleware",
]
