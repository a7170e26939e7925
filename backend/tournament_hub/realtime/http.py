import httpx

from tournament_hub.core.config import settings

DEFAULT_HEADERS = {
    "User-Agent": "tournament-hub/0.1 (realtime mirror)",
    "Content-Type": "application/json",
}


def make_client(timeout_s: float | None = None) -> httpx.Client:
    # Mirror writes are fire-and-forget; keep the timeout short so a slow store never stalls a request
    t = timeout_s if timeout_s is not None else settings.REALTIME_TIMEOUT_S
    timeout = httpx.Timeout(connect=t, read=t, write=t, pool=t)
    return httpx.Client(headers=DEFAULT_HEADERS, timeout=timeout)
