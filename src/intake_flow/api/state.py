from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional
import threading
import time

from intake_flow.api import config

# Flow graphs per language, built once at startup
flows_by_language: Optional[Dict[str, Mapping[str, Any]]] = None
flows_error: Optional[str] = None

# Intake client (external submission endpoint)
intake_client: Any = None

# Wizard sessions: session id -> {'controller': WizardController, 'last_seen': float, 'lock': Lock}
SESSIONS: Dict[str, Dict[str, Any]] = {}
sessions_lock = threading.Lock()

# Wizard Stats (for monitoring)
wizard_stats = {
    'sessions_created': 0,
    'sessions_expired': 0,
    'submissions': 0,
    'submission_failures': 0,
    'unconfirmed': 0,
    'last_submission_time': None,
}

# Metrics
REQUEST_COUNT: Any = None
REQUEST_LATENCY: Any = None
WIZARD_TRANSITIONS: Any = None
SUBMISSIONS_TOTAL: Any = None


def put_session(session_id: str, controller: Any) -> None:
    with sessions_lock:
        SESSIONS[session_id] = {'controller': controller, 'last_seen': time.time(), 'lock': threading.Lock()}
        wizard_stats['sessions_created'] = int(wizard_stats.get('sessions_created') or 0) + 1


def _touch(session_id: str) -> Optional[Dict[str, Any]]:
    """Return a live entry and refresh its idle timer. Caller holds sessions_lock.

    An entry idle past SESSION_TTL_SECONDS is evicted here instead.
    """
    entry = SESSIONS.get(session_id)
    if entry is None:
        return None
    now = time.time()
    if now - entry['last_seen'] > config.SESSION_TTL_SECONDS:
        SESSIONS.pop(session_id, None)
        wizard_stats['sessions_expired'] = int(wizard_stats.get('sessions_expired') or 0) + 1
        return None
    entry['last_seen'] = now
    return entry


def get_session(session_id: str) -> Any:
    """Return the controller for a live session, refreshing its idle timer."""
    with sessions_lock:
        entry = _touch(session_id)
        return entry['controller'] if entry is not None else None


@contextmanager
def locked_session(session_id: str) -> Iterator[Any]:
    """Serialize actions on one session; yields None when the session is gone."""
    with sessions_lock:
        entry = _touch(session_id)
    if entry is None:
        yield None
        return
    with entry['lock']:
        yield entry['controller']


def drop_session(session_id: str) -> bool:
    with sessions_lock:
        return SESSIONS.pop(session_id, None) is not None


def evict_expired(ttl_seconds: int, max_sessions: Optional[int] = None) -> int:
    """Drop idle sessions; when over capacity, drop the least recently used."""
    now = time.time()
    with sessions_lock:
        stale = [sid for sid, e in SESSIONS.items() if now - e['last_seen'] > ttl_seconds]
        if max_sessions is not None and len(SESSIONS) - len(stale) > max_sessions:
            live = sorted((e['last_seen'], sid) for sid, e in SESSIONS.items() if sid not in stale)
            stale.extend(sid for _, sid in live[:len(live) - max_sessions])
        for sid in stale:
            SESSIONS.pop(sid, None)
        wizard_stats['sessions_expired'] = int(wizard_stats.get('sessions_expired') or 0) + len(stale)
    return len(stale)


def record_submission(status: str) -> None:
    with sessions_lock:
        wizard_stats['last_submission_time'] = time.time()
        if status == 'failed':
            wizard_stats['submission_failures'] = int(wizard_stats.get('submission_failures') or 0) + 1
            return
        wizard_stats['submissions'] = int(wizard_stats.get('submissions') or 0) + 1
        if status == 'saved_unconfirmed':
            wizard_stats['unconfirmed'] = int(wizard_stats.get('unconfirmed') or 0) + 1
