# smart_session/models/discovery.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Key under which the issuer's OpenID configuration is merged into the SMART document
OIDC_DOCUMENT_KEY = "_oidc"


@dataclass
class DiscoveryEndpoints:
    """Endpoints extracted from a (possibly merged) discovery document"""

    revocation_endpoint: Optional[str] = None
    end_session_endpoint: Optional[str] = None
    authorization_endpoint: Optional[str] = None
    token_endpoint: Optional[str] = None
    issuer: Optional[str] = None
    raw_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "DiscoveryEndpoints":
        return cls()

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> "DiscoveryEndpoints":
        """
        Extract endpoints, preferring the primary document and falling back
        to the merged OpenID configuration for each field independently.
        """
        if not isinstance(document, dict):
            return cls.empty()

        secondary = document.get(OIDC_DOCUMENT_KEY)
        if not isinstance(secondary, dict):
            secondary = {}

        def pick(name: str) -> Optional[str]:
            for source in (document, secondary):
                value = source.get(name)
                if isinstance(value, str) and value:
                    return value
            return None

        return cls(
            revocation_endpoint=pick("revocation_endpoint"),
            end_session_endpoint=pick("end_session_endpoint"),
            authorization_endpoint=pick("authorization_endpoint"),
            token_endpoint=pick("token_endpoint"),
            issuer=pick("issuer"),
            raw_data=document,
        )

    @property
    def is_empty(self) -> bool:
        return not (self.revocation_endpoint or self.end_session_endpoint)
