# smart_session/auth/errors.py
from typing import Optional


class SmartSessionError(Exception):
    """Base class for errors raised by the session lifecycle"""


class ProtocolError(SmartSessionError):
    """OAuth2 error reported by the authorization server or protocol engine"""

    def __init__(self, error: str, error_description: Optional[str] = None, error_uri: Optional[str] = None):
        self.error = error
        self.error_description = error_description
        self.error_uri = error_uri
        message = error
        if error_description:
            message = f"{error}: {error_description}"
        super().__init__(message)


class AuthorizationInProgressError(SmartSessionError):
    """Another authorization or selection flow already holds the flow slot"""

    def __init__(self, active_flow: Optional[str] = None):
        self.active_flow = active_flow
        message = "Authorization already in progress"
        if active_flow:
            message = f"{message} ({active_flow})"
        super().__init__(message)


class AuthorizationCancelledError(SmartSessionError):
    """A pending authorization was abandoned by logout or a session reset"""


class InvalidTransitionError(SmartSessionError):
    """A state transition was requested from a state that does not allow it"""

    def __init__(self, transition: str, current_state):
        self.transition = transition
        self.current_state = current_state
        super().__init__(f"Transition '{transition}' not allowed from state {current_state.value}")


class ConfigurationError(SmartSessionError):
    """Required client configuration is missing"""
