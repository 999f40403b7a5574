"""Kiosk session tracking in the local key-value store."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from event_photobooth.domain.photos import (
    BoothSession,
    from_epoch_ms,
    new_local_id,
    to_epoch_ms,
    truncate_to_ms,
    utc_now,
)
from event_photobooth.services.key_value import KeyValueStore, KeyValueStoreError

_logger = logging.getLogger(__name__)


@dataclass
class BoothSessionService:
    """Tracks the active booth session and its photo count."""

    kv_store: KeyValueStore
    session_key: str = "lunar-new-year-session"
    clock: Callable[[], datetime] = utc_now

    def get_session(self) -> BoothSession:
        """Return the active session, creating one when none is stored."""
        now = truncate_to_ms(self.clock())
        existing = self._load()
        if existing is not None:
            session = replace(existing, last_activity_at=now)
        else:
            session = BoothSession(
                session_id=new_local_id("session", now),
                started_at=now,
                photo_count=0,
                last_activity_at=now,
            )
        self._save(session)
        return session

    def update_photo_count(self, count: int) -> BoothSession:
        """Record the current photo count on the active session."""
        session = replace(self.get_session(), photo_count=count)
        self._save(session)
        return session

    def clear(self) -> None:
        """Forget the active session."""
        try:
            self.kv_store.remove(self.session_key)
        except KeyValueStoreError:
            _logger.exception("Failed to clear booth session")

    def _load(self) -> BoothSession | None:
        try:
            raw = self.kv_store.get(self.session_key)
            if not raw:
                return None
            payload = json.loads(raw)
            return BoothSession(
                session_id=str(payload["sessionId"]),
                started_at=from_epoch_ms(payload["startTime"]),
                photo_count=int(payload["photoCount"]),
                last_activity_at=from_epoch_ms(payload["lastActivity"]),
            )
        except (
            KeyValueStoreError,
            ValueError,
            KeyError,
            TypeError,
            OverflowError,
            OSError,
        ):
            _logger.warning("Stored booth session is unreadable; starting a new one")
            return None

    def _save(self, session: BoothSession) -> None:
        payload = {
            "sessionId": session.session_id,
            "startTime": to_epoch_ms(session.started_at),
            "photoCount": session.photo_count,
            "lastActivity": to_epoch_ms(session.last_activity_at),
        }
        try:
            self.kv_store.set(self.session_key, json.dumps(payload))
        except KeyValueStoreError:
            _logger.exception("Failed to persist booth session")
