# smart_session/auth/__init__.py
from .claims import ClaimExtractor
from .collaborators import (
    AuthorizationCallback,
    BrowserUrlOpener,
    NullSiteDataClearer,
    PatientContext,
    ProtocolEngine,
    SiteDataClearer,
    UrlOpener,
)
from .discovery import DiscoveryResolver
from .errors import (
    AuthorizationCancelledError,
    AuthorizationInProgressError,
    ConfigurationError,
    InvalidTransitionError,
    ProtocolError,
    SmartSessionError,
)
from .identity import IdentityResolver, MAX_SCAN_DEPTH
from .lifecycle import SessionLifecycleManager
from .revocation import RevocationCoordinator
from .token_store import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    'ClaimExtractor',
    'AuthorizationCallback',
    'BrowserUrlOpener',
    'NullSiteDataClearer',
    'PatientContext',
    'ProtocolEngine',
    'SiteDataClearer',
    'UrlOpener',
    'DiscoveryResolver',
    'AuthorizationCancelledError',
    'AuthorizationInProgressError',
    'ConfigurationError',
    'InvalidTransitionError',
    'ProtocolError',
    'SmartSessionError',
    'IdentityResolver',
    'MAX_SCAN_DEPTH',
    'SessionLifecycleManager',
    'RevocationCoordinator',
    'FileTokenStore',
    'MemoryTokenStore',
    'TokenStore',
]
