"""URL classification for the static-file layer.

Decides whether a request URL belongs to the module system or the dev
server runtime, in which case static serving must step aside.
"""

import posixpath
import re
from dataclasses import dataclass, field

from devserve.constants import INTERNAL_PREFIXES
from devserve.core.types import Eligibility

_QUERY_HASH_RE = re.compile(r"[?#].*$", re.DOTALL)
_IMPORT_QUERY_RE = re.compile(r"(\?|&)import=?(?:&|$)")


def clean_url(url: str) -> str:
    """Remove the query string and hash fragment from a URL."""
    return _QUERY_HASH_RE.sub("", url)


@dataclass(frozen=True)
class UrlClassifier:
    """Classifies request URLs against the server's reserved request categories.

    Args:
        internal_prefixes: URL prefixes reserved for runtime assets
        import_query: Pattern marking a module-system import request
    """

    internal_prefixes: tuple[str, ...] = INTERNAL_PREFIXES
    import_query: re.Pattern[str] = field(default=_IMPORT_QUERY_RE)

    def is_import_request(self, url: str) -> bool:
        return self.import_query.search(url) is not None

    def is_internal_request(self, url: str) -> bool:
        return url.startswith(self.internal_prefixes)

    def classify(self, url: str, *, html_fallthrough: bool = False) -> Eligibility:
        """Decide whether a URL is eligible for static serving.

        Args:
            url: Raw request URL, including any query string
            html_fallthrough: Skip directory and ``.html`` URLs so that a
                downstream HTML handler can process them

        Returns:
            Eligibility.SKIP if the request must go to the next handler
        """
        if self.is_import_request(url) or self.is_internal_request(url):
            return Eligibility.SKIP

        if html_fallthrough and (
            url.endswith("/") or posixpath.splitext(clean_url(url))[1] == ".html"
        ):
            return Eligibility.SKIP

        return Eligibility.ELIGIBLE
