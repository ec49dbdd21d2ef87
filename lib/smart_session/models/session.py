# smart_session/models/session.py
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional
import time


class SessionState(Enum):
    """Lifecycle states of the published session"""
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHENTICATED_NO_PATIENT = "authenticated_no_patient"
    AUTHENTICATED_WITH_PATIENT = "authenticated_with_patient"

    @property
    def is_authenticated(self) -> bool:
        return self in (SessionState.AUTHENTICATED_NO_PATIENT, SessionState.AUTHENTICATED_WITH_PATIENT)


@dataclass(frozen=True)
class Session:
    """
    Published session snapshot.

    Instances are immutable; the lifecycle manager swaps in a new snapshot on
    every transition so readers never observe a half-applied update.
    """
    authorized: bool = False
    access_token: Optional[str] = None
    id_token: Optional[str] = None
    patient_id: Optional[str] = None
    updated_at: float = field(default_factory=time.time, compare=False)

    @property
    def has_tokens(self) -> bool:
        return bool(self.access_token or self.id_token)

    def state(self, awaiting_callback: bool = False) -> SessionState:
        """Derive the lifecycle state, given whether an authorization callback is outstanding"""
        if awaiting_callback:
            return SessionState.AWAITING_CALLBACK
        if not self.authorized:
            return SessionState.UNAUTHENTICATED
        if self.patient_id:
            return SessionState.AUTHENTICATED_WITH_PATIENT
        return SessionState.AUTHENTICATED_NO_PATIENT

    def evolve(self, **changes) -> "Session":
        """Copy with changes applied and a fresh timestamp"""
        changes.setdefault('updated_at', time.time())
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Safe representation without credential values"""
        return {
            'authorized': self.authorized,
            'has_access_token': bool(self.access_token),
            'has_id_token': bool(self.id_token),
            'patient_id': self.patient_id,
            'updated_at': self.updated_at,
        }


@dataclass
class SelectionGuard:
    """Guard bits that keep patient selection from launching twice"""
    external_flow_launched: bool = False
    last_external_flow_target: Optional[str] = None
    selection_in_progress: bool = False

    def reset(self) -> None:
        self.external_flow_launched = False
        self.last_external_flow_target = None
        self.selection_in_progress = False


@dataclass
class TokenPair:
    """Access / id token harvested from opaque server state"""
    access_token: Optional[str] = None
    id_token: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.access_token and self.id_token)

    def __bool__(self) -> bool:
        return bool(self.access_token or self.id_token)
