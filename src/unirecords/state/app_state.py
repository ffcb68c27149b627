from dataclasses import dataclass, field

from unirecords.state.session_state import SessionState


@dataclass
class AppState:
    """State of one flet page; every browser session gets its own."""

    session: SessionState = field(default_factory=SessionState)
