"""
Real-time mirror of match events.

The primary store is the database; the mirror is a read-optimized copy for
live clients. Writes to it are fire-and-forget: callers go through
BestEffortNotifier, which logs failures and never raises.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from tournament_hub.core.config import settings
from tournament_hub.realtime.http import make_client
from tournament_hub.realtime.payloads import MirroredMatchEvent

logger = logging.getLogger(__name__)


class MatchEventNotifier(ABC):
    @abstractmethod
    def sync_match_event(self, event: MirroredMatchEvent) -> None:
        pass

    @abstractmethod
    def remove_match_event(self, match_id: int, event_id: int) -> None:
        pass

    @abstractmethod
    def clear_match(self, match_id: int) -> None:
        pass


class NullNotifier(MatchEventNotifier):
    """Used when no real-time store is configured."""

    def sync_match_event(self, event: MirroredMatchEvent) -> None:
        logger.debug("Mirror disabled; skipping sync of event %s", event.id)

    def remove_match_event(self, match_id: int, event_id: int) -> None:
        logger.debug("Mirror disabled; skipping removal of event %s", event_id)

    def clear_match(self, match_id: int) -> None:
        logger.debug("Mirror disabled; skipping clear of match %s", match_id)


class FirebaseRealtimeNotifier(MatchEventNotifier):
    """Firebase Realtime Database over its REST API."""

    def __init__(self, database_url: str, auth_token: str = "", client: Optional[httpx.Client] = None):
        self.database_url = database_url.rstrip("/")
        self.auth_token = auth_token
        self.client = client or make_client()

    def _url(self, *parts) -> str:
        path = "/".join(str(p) for p in parts)
        return f"{self.database_url}/match-events/{path}.json"

    def _params(self) -> dict:
        return {"auth": self.auth_token} if self.auth_token else {}

    def sync_match_event(self, event: MirroredMatchEvent) -> None:
        r = self.client.put(
            self._url(event.match_id, event.id),
            params=self._params(),
            content=event.model_dump_json(),
        )
        r.raise_for_status()
        logger.info("Synced event %s of match %s to real-time store", event.id, event.match_id)

    def remove_match_event(self, match_id: int, event_id: int) -> None:
        r = self.client.delete(self._url(match_id, event_id), params=self._params())
        r.raise_for_status()
        logger.info("Removed event %s of match %s from real-time store", event_id, match_id)

    def clear_match(self, match_id: int) -> None:
        r = self.client.delete(self._url(match_id), params=self._params())
        r.raise_for_status()
        logger.info("Cleared match %s from real-time store", match_id)


class BestEffortNotifier(MatchEventNotifier):
    """Wraps a notifier so that no failure ever reaches the caller."""

    def __init__(self, inner: MatchEventNotifier):
        self.inner = inner

    def sync_match_event(self, event: MirroredMatchEvent) -> None:
        try:
            self.inner.sync_match_event(event)
        except Exception:
            logger.exception("Failed to sync event %s of match %s to real-time store", event.id, event.match_id)

    def remove_match_event(self, match_id: int, event_id: int) -> None:
        try:
            self.inner.remove_match_event(match_id, event_id)
        except Exception:
            logger.exception("Failed to remove event %s of match %s from real-time store", event_id, match_id)

    def clear_match(self, match_id: int) -> None:
        try:
            self.inner.clear_match(match_id)
        except Exception:
            logger.exception("Failed to clear match %s from real-time store", match_id)


def build_notifier() -> MatchEventNotifier:
    if not settings.FIREBASE_DATABASE_URL:
        logger.info("FIREBASE_DATABASE_URL not set; real-time mirror disabled")
        return NullNotifier()
    return FirebaseRealtimeNotifier(settings.FIREBASE_DATABASE_URL, settings.FIREBASE_AUTH_TOKEN)
