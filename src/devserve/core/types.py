"""Core type definitions."""

from collections.abc import Container
from dataclasses import dataclass
from enum import Enum
from typing import NewType, TypeAlias

# Absolute, slash-style filesystem path with no unresolved "." or ".." segments
FilePath = NewType("FilePath", str)

# Paths the module graph has already resolved; only membership is queried
SafePathSet: TypeAlias = Container[str]


class Eligibility(Enum):
    """Whether a request is handled by the static-file layer."""

    SKIP = "skip"
    ELIGIBLE = "eligible"


@dataclass(frozen=True)
class RequestContext:
    """Per-request resolution state, discarded once the request is delegated."""

    raw_url: str
    decoded_url: str
    resolved_alias_url: str | None
    file_path: FilePath
    is_directory_request: bool

    @property
    def effective_url(self) -> str:
        """URL used for serving: the alias rewrite if any, else the decoded URL."""
        if self.resolved_alias_url is None:
            return self.decoded_url
        return self.resolved_alias_url
