# smart_session/auth/collaborators.py
"""
Contracts for the external capabilities the session lifecycle drives:
the OAuth protocol engine, the external URL opener and the site-data clearer.
"""

import webbrowser
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..utils.logger import logger


@dataclass
class PatientContext:
    """Structured patient result returned by the protocol engine"""
    id: Optional[str] = None
    resource: Dict[str, Any] = field(default_factory=dict)


AuthorizationCallback = Callable[[Optional[PatientContext], Optional[Exception]], None]


class ProtocolEngine(ABC):
    """
    OAuth2 / SMART protocol engine

    Implementations own the wire protocol (authorize request, code exchange,
    token storage in their own server state). The lifecycle manager only
    drives them through this interface.
    """

    @abstractmethod
    def begin_authorization(self, callback: AuthorizationCallback) -> None:
        """
        Start an authorization flow.

        The callback is invoked exactly once, from any thread, with either a
        patient result (possibly None) or an error.
        """
        pass

    @abstractmethod
    def consume_redirect(self, url: str) -> bool:
        """Hand a redirect URL to the engine; returns True if it was handled"""
        pass

    @abstractmethod
    def is_awaiting_callback(self) -> bool:
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop any in-flight authorization state"""
        pass

    @abstractmethod
    def server_state(self) -> Any:
        """
        Opaque server state.

        Expected to be built from dicts, lists and strings (or objects with a
        to_dict() method); it is only ever scanned, never interpreted.
        """
        pass

    def auth_settings(self) -> Optional[Dict[str, Any]]:
        """
        Server-advertised authorization settings (authorize_uri, token_uri, ...)

        Looks for `auth.settings` or `authSettings` in the server state mapping.
        """
        state = self.server_state()
        if hasattr(state, 'to_dict'):
            state = state.to_dict()
        if not isinstance(state, dict):
            return None

        auth = state.get('auth')
        if isinstance(auth, dict) and isinstance(auth.get('settings'), dict):
            return auth['settings']

        settings = state.get('authSettings')
        if isinstance(settings, dict):
            return settings

        return None


class UrlOpener(ABC):
    """Opens a URL outside the application (system browser, app switch, ...)"""

    @abstractmethod
    def open(self, url: str) -> None:
        pass


class BrowserUrlOpener(UrlOpener):
    """Opens URLs in the default system browser"""

    def open(self, url: str) -> None:
        logger.info(f"Opening external URL: {url.split('?')[0]}")
        if not webbrowser.open(url):
            logger.warning("No browser available to open external URL")


class SiteDataClearer(ABC):
    """Clears browser cookies and site data used by the authorization UI"""

    @abstractmethod
    def clear_all(self, completion: Optional[Callable[[], None]] = None) -> None:
        pass


class NullSiteDataClearer(SiteDataClearer):
    """Used when authorization runs in the system browser and there is no embedded site data"""

    def clear_all(self, completion: Optional[Callable[[], None]] = None) -> None:
        logger.debug("No embedded browser data to clear")
        if completion:
            completion()
