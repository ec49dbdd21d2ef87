# smart_session/auth/revocation.py
"""
Token revocation (RFC 7009) and RP-initiated logout.

Everything here is best effort: failures are logged and reported as False,
never raised, so teardown can always proceed.
"""

from typing import Optional
from urllib.parse import urlencode

import requests

from ..models.config import SmartConfig
from ..network import HTTPManager
from ..utils.logger import logger, mask_token
from .collaborators import UrlOpener
from .discovery import DiscoveryResolver


class RevocationCoordinator:
    """Revokes access tokens and triggers the server-side end-session flow"""

    def __init__(self, config: SmartConfig, http_manager: HTTPManager,
                 discovery: Optional[DiscoveryResolver] = None,
                 url_opener: Optional[UrlOpener] = None):
        self.config = config
        self.http_manager = http_manager
        self.discovery = discovery
        self.url_opener = url_opener

    def resolve_revocation_endpoint(self) -> Optional[str]:
        """Explicitly configured endpoint, else the one advertised by discovery"""
        if self.config.revocation_endpoint:
            return self.config.revocation_endpoint

        if self.discovery is None or not self.config.discovery_url:
            return None

        return self.discovery.resolve().revocation_endpoint

    def revoke(self, token: str, endpoint: str) -> bool:
        """
        POST a revocation request for an access token

        Args:
            token: Access token to revoke
            endpoint: Revocation endpoint URL

        Returns:
            True if the server answered with a 2xx status
        """
        form = {
            'token': token,
            'token_type_hint': 'access_token',
            'client_id': self.config.client_id,
        }

        try:
            response = self.http_manager.post(
                endpoint,
                operation='revocation',
                data=form,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Token revocation failed: {e}")
            return False

        if 200 <= response.status_code < 300:
            logger.log_token_event("revoked", mask_token(token))
            return True

        logger.warning(f"Token revocation returned HTTP {response.status_code}")
        return False

    def revoke_token(self, token: Optional[str]) -> bool:
        if not token:
            return False

        endpoint = self.resolve_revocation_endpoint()
        if not endpoint:
            logger.debug("No revocation endpoint available, skipping revocation")
            return False

        return self.revoke(token, endpoint)

    def resolve_end_session_endpoint(self) -> Optional[str]:
        if self.config.end_session_endpoint:
            return self.config.end_session_endpoint

        if self.discovery is None or not self.config.discovery_url:
            return None

        return self.discovery.resolve().end_session_endpoint

    def build_end_session_url(self, id_token: Optional[str]) -> Optional[str]:
        """
        Build the RP-initiated logout URL

        Returns:
            URL or None when no post-logout redirect or end-session endpoint is known
        """
        if not self.config.post_logout_redirect:
            return None

        endpoint = self.resolve_end_session_endpoint()
        if not endpoint:
            return None

        params = {}
        if id_token:
            params['id_token_hint'] = id_token
        params['post_logout_redirect_uri'] = self.config.post_logout_redirect

        separator = '&' if '?' in endpoint else '?'
        return f"{endpoint}{separator}{urlencode(params)}"

    def do_rp_initiated_logout(self, id_token: Optional[str]) -> bool:
        url = self.build_end_session_url(id_token)
        if not url:
            logger.debug("RP-initiated logout not configured")
            return False

        if self.url_opener is None:
            logger.warning("RP-initiated logout skipped: no URL opener")
            return False

        try:
            self.url_opener.open(url)
        except Exception as e:
            logger.warning(f"Failed to open end-session URL: {e}")
            return False

        logger.log_auth_event("rp_logout", "end-session URL opened")
        return True
