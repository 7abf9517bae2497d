"""Scrape session state machine definitions."""

from enum import Enum


class SessionState(str, Enum):
    """Stages a scrape session moves through, in order."""

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    CONTEXT_READY = "CONTEXT_READY"
    PAGE_READY = "PAGE_READY"
    NAVIGATING = "NAVIGATING"
    POST_ACTIONS = "POST_ACTIONS"
    CAPTURING = "CAPTURING"
    TEARING_DOWN = "TEARING_DOWN"
    DONE = "DONE"


# Any stage may fail and jump straight to teardown
TEARDOWN_STATES = {SessionState.TEARING_DOWN, SessionState.DONE}

STATE_TRANSITIONS: dict[SessionState, list[SessionState]] = {
    SessionState.IDLE: [SessionState.CONNECTING],
    SessionState.CONNECTING: [SessionState.CONTEXT_READY],
    SessionState.CONTEXT_READY: [SessionState.PAGE_READY],
    SessionState.PAGE_READY: [SessionState.NAVIGATING],
    SessionState.NAVIGATING: [SessionState.POST_ACTIONS],
    SessionState.POST_ACTIONS: [SessionState.CAPTURING],
    SessionState.CAPTURING: [SessionState.TEARING_DOWN],
    SessionState.TEARING_DOWN: [SessionState.DONE],
    SessionState.DONE: [],
}
