"""
Proxy Match: Shared API dependencies

The session facade is a process-wide singleton.  The lifespan in
``proxymatch.main`` installs it at startup; tests may override
``get_session`` through ``app.dependency_overrides``.
"""

from __future__ import annotations

import threading

from fastapi import HTTPException

from proxymatch.errors import ProxyMatchError
from proxymatch.services.session_facade import SessionFacade, build_session

_session: SessionFacade | None = None
_session_lock = threading.Lock()


def get_session() -> SessionFacade:
    global _session
    session = _session
    if session is not None:
        return session
    with _session_lock:
        if _session is None:
            _session = build_session()
        return _session


def set_session(session: SessionFacade | None) -> None:
    global _session
    with _session_lock:
        _session = session


def to_http_exception(exc: ProxyMatchError) -> HTTPException:
    """Translate a core failure into the HTTP error the client sees."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
