"""Shared test fixtures."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import pytest
from devserve.config import Config, FsConfig, ResolveConfig, ServeConfig, ServerConfig
from devserve.core.alias import AliasRule
from devserve.core.guard import StrictMode


@dataclass
class Project:
    """Temporary project tree with a sibling directory outside the root."""

    root: Path
    outside: Path

    @property
    def secret(self) -> Path:
        return self.outside / "secret.txt"


@pytest.fixture
def project(tmp_path: Path) -> Project:
    """Create a project root and a directory next to it.

    Layout::

        project/
            index.html
            src/main.ts
            src/util.js
            assets/logo.png
            docs/index.html
            public/robots.txt
        outside/
            secret.txt
            page.html
    """
    root = (tmp_path / "project").resolve()
    (root / "src").mkdir(parents=True)
    (root / "assets").mkdir()
    (root / "docs").mkdir()
    (root / "public").mkdir()
    (root / "index.html").write_text("<h1>Home</h1>")
    (root / "src" / "main.ts").write_text("export const main = 1;")
    (root / "src" / "util.js").write_text("export const util = 2;")
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (root / "docs" / "index.html").write_text("<h1>Docs</h1>")
    (root / "public" / "robots.txt").write_text("User-agent: *")

    outside = (tmp_path / "outside").resolve()
    outside.mkdir()
    (outside / "secret.txt").write_text("top secret")
    (outside / "page.html").write_text("<h1>Outside</h1>")

    return Project(root=root, outside=outside)


class ConfigFactory(Protocol):
    def __call__(
        self,
        *,
        strict: StrictMode = ...,
        allow: list[Path] | None = ...,
        alias: list[AliasRule] | None = ...,
        public_dir: str | None = ...,
    ) -> Config: ...


@pytest.fixture
def make_config(project: Project) -> ConfigFactory:
    """Return a factory for Configs rooted at the test project."""

    def factory(
        *,
        strict: StrictMode = StrictMode.ENFORCE,
        allow: list[Path] | None = None,
        alias: list[AliasRule] | None = None,
        public_dir: str | None = None,
    ) -> Config:
        return Config(
            server=ServerConfig(),
            serve=ServeConfig(
                root=project.root,
                public_dir=project.root / public_dir if public_dir else None,
            ),
            fs=FsConfig(strict=strict, allow=allow),
            resolve=ResolveConfig(alias=alias or []),
        )

    return factory
