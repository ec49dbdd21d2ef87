# smart_session/models/__init__.py
from .config import SmartConfig
from .discovery import DiscoveryEndpoints, OIDC_DOCUMENT_KEY
from .request_models import RequestConfig
from .session import Session, SessionState, SelectionGuard, TokenPair

__all__ = [
    "SmartConfig",
    "DiscoveryEndpoints",
    "OIDC_DOCUMENT_KEY",
    "RequestConfig",
    "Session",
    "SessionState",
    "SelectionGuard",
    "TokenPair",
]
