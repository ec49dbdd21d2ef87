# smart_session/auth/discovery.py
import threading
import time
from typing import Dict, Optional, Any

import requests

from ..models.discovery import DiscoveryEndpoints, OIDC_DOCUMENT_KEY
from ..network import HTTPManager
from ..utils.logger import logger

OPENID_CONFIGURATION_SUFFIX = "/.well-known/openid-configuration"


class DiscoveryResolver:
    """
    Resolves revocation and end-session endpoints from the SMART configuration
    document, merged with the issuer's OpenID configuration when one is advertised
    """

    def __init__(self, discovery_url: Optional[str], http_manager: HTTPManager,
                 cache_duration: int = 3600):
        self.discovery_url = discovery_url
        self.http_manager = http_manager
        self.cache_duration = cache_duration

        # Cache storage
        self._endpoints: Optional[DiscoveryEndpoints] = None
        self._last_fetch: Optional[float] = None
        self._lock = threading.Lock()

    def resolve(self, force_refresh: bool = False) -> DiscoveryEndpoints:
        """
        Resolve discovery endpoints

        Failures never raise; they yield empty endpoints and are not cached.

        Returns:
            DiscoveryEndpoints: possibly empty
        """
        # Revocation and RP logout may resolve concurrently from the worker pool
        with self._lock:
            return self._resolve(force_refresh)

    def _resolve(self, force_refresh: bool) -> DiscoveryEndpoints:
        if not force_refresh and self._endpoints and self._last_fetch:
            cache_age = time.time() - self._last_fetch
            if cache_age < self.cache_duration:
                logger.debug("Using cached discovery endpoints")
                return self._endpoints

        if not self.discovery_url:
            logger.debug("No discovery URL configured")
            return DiscoveryEndpoints.empty()

        document = self.fetch_document(self.discovery_url, 'discovery')
        if document is None:
            return DiscoveryEndpoints.empty()

        issuer = document.get('issuer')
        if isinstance(issuer, str) and issuer:
            openid_url = issuer.rstrip('/') + OPENID_CONFIGURATION_SUFFIX
            openid_document = self.fetch_document(openid_url, 'openid_config')
            if openid_document is not None:
                document = dict(document)
                document[OIDC_DOCUMENT_KEY] = openid_document
            else:
                logger.debug("Continuing with SMART configuration only")

        endpoints = DiscoveryEndpoints.from_document(document)
        self._endpoints = endpoints
        self._last_fetch = time.time()

        logger.info(
            f"Discovery successful: "
            f"revocation={'yes' if endpoints.revocation_endpoint else 'no'}, "
            f"end_session={'yes' if endpoints.end_session_endpoint else 'no'}"
        )
        return endpoints

    def fetch_document(self, url: str, operation: str) -> Optional[Dict[str, Any]]:
        """
        GET a JSON configuration document

        Returns:
            Parsed JSON object, None on any failure
        """
        try:
            response = self.http_manager.get(url, operation=operation)
            document = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Discovery request to {url} failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Discovery document at {url} is not valid JSON: {e}")
            return None

        if not isinstance(document, dict):
            logger.warning(f"Discovery document at {url} is not a JSON object")
            return None

        return document

    def clear_cache(self) -> None:
        self._endpoints = None
        self._last_fetch = None
