"""Process-lifetime notification channel with duplicate suppression by id."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable


_log = logging.getLogger("glance.telemetry")

NETWORK_ACCESS_ID = "network_location_access"
NETWORK_ACCESS_MESSAGE = (
    "Glance cannot read wireless network information because desktop apps are not allowed "
    "to use location services. Open the location settings to grant access."
)


@dataclass(frozen=True)
class Notification:
    id: str
    source_id: str
    message: str
    settings_target: str | None = None


NotificationListener = Callable[[Notification], None]


class NotificationCenter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seen: dict[str, Notification] = {}
        self._listeners: list[NotificationListener] = []

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def post(self, notification: Notification) -> bool:
        """Deliver ``notification`` unless one with the same id was already posted."""
        with self._lock:
            if notification.id in self._seen:
                return False
            self._seen[notification.id] = notification
            listeners = list(self._listeners)

        _log.info(
            f"notification posted id={notification.id}",
            extra={"event": "notification_posted", "notification_id": notification.id},
        )
        for listener in listeners:
            try:
                listener(notification)
            except Exception:
                _log.exception("notification listener failed", extra={"event": "listener_failed"})
        return True

    def posted(self) -> list[Notification]:
        with self._lock:
            return list(self._seen.values())

    def has(self, notification_id: str) -> bool:
        with self._lock:
            return notification_id in self._seen


def network_permission_notice(source_id: str = "network") -> Notification:
    return Notification(
        id=NETWORK_ACCESS_ID,
        source_id=source_id,
        message=NETWORK_ACCESS_MESSAGE,
        settings_target="location",
    )
