"""Script policy - decides whether JavaScript is stripped while archiving."""

from __future__ import annotations

import logging
import re

log = logging.getLogger(__name__)


class ScriptPolicy:
    """Matches URLs against a deny-list of host/path fragments.

    ``uris`` is pipe-separated, e.g. ``wikipedia.org|eff.org/tags``.
    Fragments are literal and case-sensitive; any fragment occurring in
    the URL disables scripts. An empty list always allows scripts.
    """

    def __init__(self, uris: str = "") -> None:
        self._fragments = [f for f in (uris or "").split("|") if f]
        self._pattern: re.Pattern[str] | None = None
        if self._fragments:
            self._pattern = re.compile(
                "|".join(re.escape(f) for f in self._fragments), re.MULTILINE,
            )

    @property
    def fragments(self) -> list[str]:
        return list(self._fragments)

    def disable_js(self, url: str) -> bool:
        if self._pattern is None:
            return False
        matched = self._pattern.search(url) is not None
        if matched:
            log.debug("Scripts disabled for %s", url)
        return matched
