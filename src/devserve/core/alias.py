"""Path alias rewriting for static requests.

Rules are consulted in configured order and the first match wins; rules
after a successful match are never looked at. The table is never sorted,
so a broad rule listed first shadows more specific ones after it.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AliasRule:
    """A single rewrite rule.

    A string ``find`` matches URLs that start with it. A compiled pattern
    matches when it is found anywhere in the URL; its replacement may use
    ``\\1``-style group references.
    """

    find: str | re.Pattern[str]
    replacement: str

    def matches(self, url: str) -> bool:
        if isinstance(self.find, str):
            return url.startswith(self.find)
        return self.find.search(url) is not None

    def apply(self, url: str) -> str:
        """Replace the first occurrence of the match with the replacement."""
        if isinstance(self.find, str):
            return url.replace(self.find, self.replacement, 1)
        return self.find.sub(self.replacement, url, count=1)


class AliasTable:
    """Ordered, immutable sequence of alias rules."""

    def __init__(self, rules: Iterable[AliasRule] = ()) -> None:
        self._rules = tuple(rules)

    def __iter__(self) -> Iterator[AliasRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"AliasTable({list(self._rules)!r})"

    def resolve(self, url: str, root: str) -> str | None:
        """Rewrite a decoded URL with the first matching rule.

        If the rewritten URL starts with the serving root, that single
        occurrence of the root is stripped so a replacement that spells
        out the root does not double it when resolved against the root.

        Args:
            url: Decoded request URL
            root: Serving root, slash-style without trailing slash

        Returns:
            Rewritten URL, or None if no rule matched
        """
        for rule in self._rules:
            if not rule.matches(url):
                continue
            redirected = rule.apply(url)
            if root != "/" and (redirected == root or redirected.startswith(root + "/")):
                redirected = redirected[len(root) :]
            logger.debug(f"Alias {rule.find!r} rewrote {url} to {redirected}")
            return redirected
        return None
