"""Tests for static, public and raw filesystem middlewares."""

from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from aiohttp.typedefs import Middleware
from devserve.core.alias import AliasRule, AliasTable
from devserve.core.guard import AccessGuard, ServingPolicy, StrictMode
from devserve.logger import ServerLogger
from devserve.middlewares import (
    serve_public_middleware,
    serve_raw_fs_middleware,
    serve_static_middleware,
)


def _guard(
    allow: list[Path],
    strict: StrictMode = StrictMode.ENFORCE,
    safe_paths: set[str] | None = None,
) -> AccessGuard:
    return AccessGuard(ServingPolicy.create(allow, strict=strict), safe_paths, ServerLogger())


def _app(middleware: Middleware) -> tuple[web.Application, list[str]]:
    """Build an app whose only route records the requests that fell through."""
    fallthrough: list[str] = []

    async def next_handler(request: web.Request) -> web.Response:
        fallthrough.append(request.path)
        return web.Response(status=404, text="next handler")

    app = web.Application(middlewares=[middleware])
    app.router.add_route("*", "/{path:.*}", next_handler)
    return app, fallthrough


class TestServeStaticMiddleware:
    """Tests for serve_static_middleware()."""

    @pytest.mark.asyncio
    async def test__existing_file__is_served(self, aiohttp_client: Any, project: Any) -> None:
        app, fallthrough = _app(serve_static_middleware(project.root, guard=_guard([project.root])))
        client = await aiohttp_client(app)

        response = await client.get("/assets/logo.png")

        assert response.status == 200
        assert await response.read() == b"\x89PNG\r\n\x1a\n"
        assert fallthrough == []

    @pytest.mark.asyncio
    async def test__typescript_file__served_as_javascript(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """Script sources get a JavaScript content type."""
        app, _ = _app(serve_static_middleware(project.root, guard=_guard([project.root])))
        client = await aiohttp_client(app)

        response = await client.get("/src/main.ts")

        assert response.status == 200
        assert response.headers["Content-Type"].startswith("application/javascript")

    @pytest.mark.asyncio
    async def test__directory_request__falls_through(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """Directory URLs are left for the HTML handler."""
        app, fallthrough = _app(serve_static_middleware(project.root, guard=_guard([project.root])))
        client = await aiohttp_client(app)

        response = await client.get("/docs/")

        assert response.status == 404
        assert fallthrough == ["/docs/"]

    @pytest.mark.asyncio
    async def test__html_request__falls_through(self, aiohttp_client: Any, project: Any) -> None:
        app, fallthrough = _app(serve_static_middleware(project.root, guard=_guard([project.root])))
        client = await aiohttp_client(app)

        response = await client.get("/index.html")

        assert response.status == 404
        assert fallthrough == ["/index.html"]

    @pytest.mark.asyncio
    async def test__import_request__falls_through(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        app, fallthrough = _app(serve_static_middleware(project.root, guard=_guard([project.root])))
        client = await aiohttp_client(app)

        response = await client.get("/src/main.ts?import")

        assert response.status == 404
        assert fallthrough == ["/src/main.ts"]

    @pytest.mark.asyncio
    async def test__missing_file__falls_through(self, aiohttp_client: Any, project: Any) -> None:
        app, fallthrough = _app(serve_static_middleware(project.root, guard=_guard([project.root])))
        client = await aiohttp_client(app)

        response = await client.get("/assets/missing.png")

        assert response.status == 404
        assert fallthrough == ["/assets/missing.png"]

    @pytest.mark.asyncio
    async def test__restricted_file__looks_like_missing_file(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """A blocked file gets the same response as a file that does not exist."""
        guard = _guard([project.root / "src"])
        app, fallthrough = _app(serve_static_middleware(project.root, guard=guard))
        client = await aiohttp_client(app)

        blocked = await client.get("/assets/logo.png")
        missing = await client.get("/assets/missing.png")

        assert blocked.status == missing.status == 404
        assert await blocked.text() == await missing.text()
        assert fallthrough == ["/assets/logo.png", "/assets/missing.png"]

    @pytest.mark.asyncio
    async def test__soft_strict__serves_outside_allow_list(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        guard = _guard([project.root / "src"], strict=StrictMode.WARN)
        app, _ = _app(serve_static_middleware(project.root, guard=guard))
        client = await aiohttp_client(app)

        response = await client.get("/assets/logo.png")

        assert response.status == 200

    @pytest.mark.asyncio
    async def test__alias__serves_rewritten_file(self, aiohttp_client: Any, project: Any) -> None:
        """Aliases apply to static requests."""
        aliases = AliasTable([AliasRule(find="/@/", replacement="/src/")])
        app, _ = _app(
            serve_static_middleware(project.root, guard=_guard([project.root]), aliases=aliases)
        )
        client = await aiohttp_client(app)

        response = await client.get("/@/util.js")

        assert response.status == 200
        assert "export const util" in await response.text()

    @pytest.mark.asyncio
    async def test__alias_with_root__is_not_doubled(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """A replacement that spells out the root resolves inside the root once."""
        aliases = AliasTable([AliasRule(find="/~/", replacement=f"{project.root}/src/")])
        app, _ = _app(
            serve_static_middleware(project.root, guard=_guard([project.root]), aliases=aliases)
        )
        client = await aiohttp_client(app)

        response = await client.get("/~/main.ts")

        assert response.status == 200

    @pytest.mark.asyncio
    async def test__alias_to_missing_file__passes_rewritten_request_on(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """Once committed, the rewritten URL is what later handlers see."""
        aliases = AliasTable([AliasRule(find="/@/", replacement="/src/")])
        app, fallthrough = _app(
            serve_static_middleware(project.root, guard=_guard([project.root]), aliases=aliases)
        )
        client = await aiohttp_client(app)

        response = await client.get("/@/missing.js")

        assert response.status == 404
        assert fallthrough == ["/src/missing.js"]

    @pytest.mark.asyncio
    async def test__restricted_alias_target__keeps_original_url(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """The rewrite is not committed when the target is restricted."""
        aliases = AliasTable([AliasRule(find="/@/", replacement="/assets/")])
        guard = _guard([project.root / "src"])
        app, fallthrough = _app(
            serve_static_middleware(project.root, guard=guard, aliases=aliases)
        )
        client = await aiohttp_client(app)

        response = await client.get("/@/logo.png")

        assert response.status == 404
        assert fallthrough == ["/@/logo.png"]

    @pytest.mark.asyncio
    async def test__alias_escaping_root__is_not_served(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """Even with the policy disabled, files outside the root are not served."""
        aliases = AliasTable([AliasRule(find="/escape/", replacement="/../outside/")])
        guard = _guard([], strict=StrictMode.DISABLED)
        app, _ = _app(serve_static_middleware(project.root, guard=guard, aliases=aliases))
        client = await aiohttp_client(app)

        response = await client.get("/escape/secret.txt")

        assert response.status == 404


class TestServeRawFsMiddleware:
    """Tests for serve_raw_fs_middleware()."""

    @pytest.mark.asyncio
    async def test__allowed_file__is_served_from_filesystem_root(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        guard = _guard([project.root, project.outside])
        app, fallthrough = _app(serve_raw_fs_middleware(guard=guard, windows=False))
        client = await aiohttp_client(app)

        response = await client.get(f"/@fs{project.secret}")

        assert response.status == 200
        assert await response.text() == "top secret"
        assert fallthrough == []

    @pytest.mark.asyncio
    async def test__restricted_file__falls_through_once(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """A restricted path goes to the next handler and is not served as well."""
        guard = _guard([project.root])
        app, fallthrough = _app(serve_raw_fs_middleware(guard=guard, windows=False))
        client = await aiohttp_client(app)

        response = await client.get(f"/@fs{project.secret}")

        assert response.status == 404
        assert await response.text() == "next handler"
        assert fallthrough == [f"/@fs{project.secret}"]

    @pytest.mark.asyncio
    async def test__safe_path__is_served_outside_allow_list(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        """Files known to the module graph are exempt from the allow list."""
        guard = _guard([project.root], safe_paths={str(project.secret)})
        app, _ = _app(serve_raw_fs_middleware(guard=guard, windows=False))
        client = await aiohttp_client(app)

        response = await client.get(f"/@fs{project.secret}")

        assert response.status == 200

    @pytest.mark.asyncio
    async def test__without_prefix__falls_through(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        guard = _guard([], strict=StrictMode.DISABLED)
        app, fallthrough = _app(serve_raw_fs_middleware(guard=guard, windows=False))
        client = await aiohttp_client(app)

        response = await client.get("/src/main.ts")

        assert response.status == 404
        assert fallthrough == ["/src/main.ts"]

    @pytest.mark.asyncio
    async def test__missing_file__falls_through(self, aiohttp_client: Any, project: Any) -> None:
        guard = _guard([project.root])
        app, fallthrough = _app(serve_raw_fs_middleware(guard=guard, windows=False))
        client = await aiohttp_client(app)

        response = await client.get(f"/@fs{project.outside}/missing.txt")

        assert response.status == 404
        assert len(fallthrough) == 1


class TestServePublicMiddleware:
    """Tests for serve_public_middleware()."""

    @pytest.mark.asyncio
    async def test__public_file__is_served_at_root(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        app, _ = _app(serve_public_middleware(project.root / "public"))
        client = await aiohttp_client(app)

        response = await client.get("/robots.txt")

        assert response.status == 200
        assert await response.text() == "User-agent: *"

    @pytest.mark.asyncio
    async def test__import_request__falls_through(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        app, fallthrough = _app(serve_public_middleware(project.root / "public"))
        client = await aiohttp_client(app)

        response = await client.get("/robots.txt?import")

        assert response.status == 404
        assert fallthrough == ["/robots.txt"]

    @pytest.mark.asyncio
    async def test__internal_request__falls_through(
        self, aiohttp_client: Any, project: Any
    ) -> None:
        app, fallthrough = _app(serve_public_middleware(project.root / "public"))
        client = await aiohttp_client(app)

        response = await client.get("/@devserve/client")

        assert response.status == 404
        assert fallthrough == ["/@devserve/client"]
