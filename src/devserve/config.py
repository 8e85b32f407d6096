"""Configuration management for devserve.

Supports TOML configuration format with auto-discovery.
"""

import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from devserve.core.alias import AliasRule
from devserve.core.guard import ServingPolicy, StrictMode

CONFIG_FILENAME = "devserve.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 5173


@dataclass
class ServeConfig:
    """Serving root configuration."""

    root: Path = field(default_factory=lambda: Path("."))
    public_dir: Path | None = None


@dataclass
class FsConfig:
    """Filesystem access policy configuration.

    ``allow`` of None means "the serving root only".
    """

    strict: StrictMode = StrictMode.ENFORCE
    allow: list[Path] | None = None


@dataclass
class ResolveConfig:
    """Alias configuration."""

    alias: list[AliasRule] = field(default_factory=list)


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    serve: ServeConfig
    fs: FsConfig
    resolve: ResolveConfig
    config_path: Path | None = None

    @property
    def root(self) -> Path:
        """Absolute serving root."""
        return self.serve.root.resolve()

    def serving_policy(self) -> ServingPolicy:
        """Build the serving policy, defaulting the allow list to the root."""
        allow = self.fs.allow if self.fs.allow is not None else [self.root]
        return ServingPolicy.create(
            (directory.resolve() for directory in allow),
            strict=self.fs.strict,
        )

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for devserve.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> "Config":
        """Create config with all defaults, rooted at the current directory."""
        return cls(
            server=ServerConfig(),
            serve=ServeConfig(root=Path.cwd()),
            fs=FsConfig(),
            resolve=ResolveConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            serve=cls._parse_serve(data.get("serve"), config_dir),
            fs=cls._parse_fs(data.get("fs"), config_dir),
            resolve=cls._parse_resolve(data.get("resolve")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 5173)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_serve(cls, data: object, config_dir: Path) -> ServeConfig:
        """Parse serve configuration section.

        Args:
            data: Raw serve section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            ServeConfig instance
        """
        if data is None:
            return ServeConfig(root=config_dir)

        if not isinstance(data, dict):
            raise ValueError("serve section must be a dictionary")

        root = data.get("root", ".")
        if not isinstance(root, str):
            raise ValueError("serve.root must be a string")
        root_path = config_dir / root

        public_dir = data.get("public_dir")
        if public_dir is not None and not isinstance(public_dir, str):
            raise ValueError("serve.public_dir must be a string")
        public_path = root_path / public_dir if public_dir is not None else None

        return ServeConfig(root=root_path, public_dir=public_path)

    @classmethod
    def _parse_fs(cls, data: object, config_dir: Path) -> FsConfig:
        """Parse fs configuration section.

        ``strict`` accepts ``true`` (enforce), ``false`` (warn only) or
        ``"disabled"``.
        """
        if data is None:
            return FsConfig()

        if not isinstance(data, dict):
            raise ValueError("fs section must be a dictionary")

        strict = cls._parse_strict(data.get("strict", True))

        allow_raw = data.get("allow")
        allow: list[Path] | None = None
        if allow_raw is not None:
            if not isinstance(allow_raw, list):
                raise ValueError("fs.allow must be a list")
            allow = []
            for item in allow_raw:
                if not isinstance(item, str):
                    raise ValueError("fs.allow items must be strings")
                allow.append(config_dir / item)

        return FsConfig(strict=strict, allow=allow)

    @classmethod
    def _parse_strict(cls, value: object) -> StrictMode:
        if value is True:
            return StrictMode.ENFORCE
        if value is False:
            return StrictMode.WARN
        if value == "disabled":
            return StrictMode.DISABLED
        raise ValueError('fs.strict must be true, false or "disabled"')

    @classmethod
    def _parse_resolve(cls, data: object) -> ResolveConfig:
        """Parse resolve configuration section.

        Each ``[[resolve.alias]]`` entry needs ``find`` and ``replacement``;
        ``regex = true`` compiles ``find`` as a regular expression.
        """
        if data is None:
            return ResolveConfig()

        if not isinstance(data, dict):
            raise ValueError("resolve section must be a dictionary")

        alias_raw = data.get("alias", [])
        if not isinstance(alias_raw, list):
            raise ValueError("resolve.alias must be a list")

        rules: list[AliasRule] = []
        for index, item in enumerate(alias_raw):
            if not isinstance(item, dict):
                raise ValueError(f"resolve.alias[{index}] must be a table")

            find = item.get("find")
            replacement = item.get("replacement")
            if not isinstance(find, str) or not isinstance(replacement, str):
                raise ValueError(
                    f"resolve.alias[{index}] needs string find and replacement"
                )

            regex = item.get("regex", False)
            if not isinstance(regex, bool):
                raise ValueError(f"resolve.alias[{index}].regex must be a boolean")

            if regex:
                try:
                    pattern = re.compile(find)
                except re.error as e:
                    raise ValueError(f"resolve.alias[{index}].find is not a valid regex: {e}") from e
                rules.append(AliasRule(find=pattern, replacement=replacement))
            else:
                rules.append(AliasRule(find=find, replacement=replacement))

        return ResolveConfig(alias=rules)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        root: Path | None = None,
        strict: StrictMode | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. This follows
        the immutable pattern - the original Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            root: Override serve.root
            strict: Override fs.strict

        Returns:
            New Config instance with overrides applied
        """
        server = replace(
            self.server,
            host=host if host is not None else self.server.host,
            port=port if port is not None else self.server.port,
        )
        serve = replace(self.serve, root=root) if root is not None else self.serve
        fs = replace(self.fs, strict=strict) if strict is not None else self.fs
        return replace(self, server=server, serve=serve, fs=fs)
