"""Server-side warning output with message deduplication.

Warnings about blocked or unrestricted file access tend to repeat on every
request for the same file. ``ServerLogger.warn_once`` emits each distinct
message a single time per server lifetime.
"""

import logging
import threading


class WarnOnceRegistry:
    """Thread-safe record of warning messages already emitted.

    Created with the server and cleared when it shuts down or restarts.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def __contains__(self, message: object) -> bool:
        with self._lock:
            return message in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def mark(self, message: str) -> bool:
        """Record a message.

        Returns:
            True if the message had not been recorded before
        """
        with self._lock:
            if message in self._seen:
                return False
            self._seen.add(message)
            return True

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()


class ServerLogger:
    """Warning sink consumed by the access guard.

    Args:
        registry: Deduplication state for ``warn_once``
        logger: Underlying standard library logger
    """

    def __init__(
        self,
        registry: WarnOnceRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry if registry is not None else WarnOnceRegistry()
        self._logger = logger or logging.getLogger("devserve.server")

    def warn(self, message: str) -> None:
        self._logger.warning(message)

    def warn_once(self, message: str) -> None:
        if self.registry.mark(message):
            self._logger.warning(message)
