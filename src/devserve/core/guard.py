"""Filesystem access control for served files.

The guard only answers "is this path restricted?". It never produces a
403 itself: callers fall through to the next handler, which normally ends
in a plain 404. A blocked file therefore looks exactly like a missing one,
and clients cannot probe the disk for files outside the allow list.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from devserve.core.paths import ensure_leading_slash, is_within, normalize_path
from devserve.core.types import SafePathSet
from devserve.core.urls import clean_url
from devserve.logger import ServerLogger

logger = logging.getLogger(__name__)

SOFT_STRICT_NOTICE = (
    "For security reasons, accessing files outside of the serving allow list "
    "will be restricted by default in a future version of devserve. "
    'Set `strict = true` in the [fs] section of devserve.toml to opt in now, or `strict = "disabled"` '
    "to turn the check off."
)


class StrictMode(Enum):
    """How the allow list is applied."""

    ENFORCE = "enforce"
    # Legacy soft state: violations are logged but still served
    WARN = "warn"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ServingPolicy:
    """Filesystem serving policy, fixed for the lifetime of a server."""

    strict: StrictMode = StrictMode.ENFORCE
    allow: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        allow: Iterable[str | Path],
        strict: StrictMode = StrictMode.ENFORCE,
    ) -> "ServingPolicy":
        """Build a policy with allow-listed directories normalized to slash-style."""
        return cls(
            strict=strict,
            allow=tuple(ensure_leading_slash(normalize_path(str(d))) for d in allow),
        )

    def allows(self, file: str) -> bool:
        """Check whether a normalized path is inside an allow-listed directory."""
        return any(is_within(file, directory) for directory in self.allow)


def file_exists(file: str) -> bool:
    """Existence probe where any stat failure counts as missing."""
    try:
        Path(file).stat()
    except (OSError, ValueError):
        return False
    return True


class AccessGuard:
    """Decides whether serving a path is restricted.

    Args:
        policy: Strict mode and allow list
        safe_paths: Files the module graph resolved legitimately; these may
            live outside the allow list (e.g. linked packages)
        server_logger: Receives violation warnings
    """

    def __init__(
        self,
        policy: ServingPolicy,
        safe_paths: SafePathSet | None = None,
        server_logger: ServerLogger | None = None,
    ) -> None:
        self.policy = policy
        self.safe_paths: SafePathSet = safe_paths if safe_paths is not None else frozenset()
        self.server_logger = server_logger or ServerLogger()

    def is_restricted(self, url: str) -> bool:
        """Check whether the file at ``url`` must not be served.

        Args:
            url: Absolute filesystem path, possibly carrying a query or hash

        Returns:
            True if the file exists outside the allow list and strict mode
            is enforcing
        """
        policy = self.policy
        if policy.strict is StrictMode.DISABLED:
            return False

        file = ensure_leading_slash(normalize_path(clean_url(url)))

        # A missing file may be an API route; restricting it would reveal
        # which paths exist and which are merely blocked
        if not file_exists(file):
            return False

        if file in self.safe_paths:
            return False

        if policy.allows(file):
            return False

        if policy.strict is StrictMode.WARN:
            self.server_logger.warn_once(f'Unrestricted file system access to "{url}"')
            self.server_logger.warn_once(SOFT_STRICT_NOTICE)
            return False

        allowed = "\n".join(f"- {directory}" for directory in policy.allow)
        self.server_logger.warn_once(
            f'The request url "{url}" is outside of the serving allow list:\n\n'
            f"{allowed}\n\n"
            "See the `allow` setting in the [fs] section of devserve.toml."
        )
        logger.debug(f"Restricted {file}")
        return True
