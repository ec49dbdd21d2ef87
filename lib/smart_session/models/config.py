# smart_session/models/config.py
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

from ..utils.environment import EnvironmentManager, get_environment_manager

SMART_CONFIGURATION_SUFFIX = "/.well-known/smart-configuration"

DEFAULT_SCOPES = "launch/patient patient/*.read openid fhirUser"
DEFAULT_TOKEN_KEY = "accessToken"

# Teardown fallbacks used when the UI does not hand back an explicit signal
DEFAULT_RESELECT_DELAY = 0.12
DEFAULT_RESET_DELAY = 0.18
DEFAULT_TEARDOWN_TIMEOUT = 5.0

DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_DISCOVERY_CACHE_DURATION = 3600


@dataclass
class SmartConfig:
    """
    Client configuration for a SMART-on-FHIR authorization server.

    Read-only once handed to the lifecycle manager.
    """

    base_url: str
    client_id: str
    redirect_uri: str
    scopes: str = DEFAULT_SCOPES

    # Optional endpoints; discovery fills the gaps at runtime
    discovery_url: Optional[str] = None
    revocation_endpoint: Optional[str] = None
    end_session_endpoint: Optional[str] = None
    post_logout_redirect: Optional[str] = None

    token_key: str = DEFAULT_TOKEN_KEY

    reselect_delay: float = DEFAULT_RESELECT_DELAY
    reset_delay: float = DEFAULT_RESET_DELAY
    teardown_timeout: float = DEFAULT_TEARDOWN_TIMEOUT

    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    discovery_cache_duration: int = DEFAULT_DISCOVERY_CACHE_DURATION

    def __post_init__(self):
        if self.base_url:
            self.base_url = self.base_url.rstrip('/')
        # SMART servers publish their configuration under the FHIR base
        if self.discovery_url is None and self.base_url:
            self.discovery_url = self.base_url + SMART_CONFIGURATION_SUFFIX

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SmartConfig":
        """Create SmartConfig from a mapping, ignoring unknown keys and empty values"""
        known = {f.name for f in fields(cls)}
        kwargs = {
            key: value for key, value in data.items()
            if key in known and value not in (None, "")
        }
        for required in ('base_url', 'client_id', 'redirect_uri'):
            kwargs.setdefault(required, "")
        return cls(**kwargs)

    @classmethod
    def from_environment(cls, env_manager: Optional[EnvironmentManager] = None) -> "SmartConfig":
        """Create SmartConfig from config.json and SMART_* environment variables"""
        env_manager = env_manager or get_environment_manager()
        data = {f.name: env_manager.get_config(f.name) for f in fields(cls)}
        return cls.from_dict(data)

    def missing_fields(self) -> List[str]:
        """Names of required settings that are not configured"""
        return [name for name in ('base_url', 'client_id', 'redirect_uri') if not getattr(self, name)]
