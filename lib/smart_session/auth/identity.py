# smart_session/auth/identity.py
"""
Patient identity resolution from whatever the authorization server handed back:
known tokens first, then a bounded scan of the protocol engine's opaque server state.
"""

import re
from typing import Any, Iterator, List, Optional, Tuple

from ..models.session import TokenPair
from ..utils.logger import logger
from .claims import ClaimExtractor

# Nested structures deeper than this are not scanned; a patient id buried
# below this depth is an accepted miss. The root value is depth 0, so a
# string is visited only when at most MAX_SCAN_DEPTH containers enclose it.
MAX_SCAN_DEPTH = 6

# Strings longer than this are treated as opaque tokens even when they are not dot-delimited
OPAQUE_TOKEN_MIN_LENGTH = 100

_SEGMENT_CHAR = r'[A-Za-z0-9_=\-]'
_SEGMENT = rf'{_SEGMENT_CHAR}+'
_TOKEN_CHARS = r'[A-Za-z0-9_=.\-]'

# 2-3 base64url segments, not embedded in a longer dotted run; a trailing
# full stop ending a sentence is allowed
TOKEN_PATTERN = re.compile(
    rf'(?<!{_TOKEN_CHARS}){_SEGMENT}(?:\.{_SEGMENT}){{1,2}}(?!{_SEGMENT_CHAR}|\.{_SEGMENT_CHAR})'
)
_SEGMENT_PATTERN = re.compile(rf'^{_SEGMENT}$')


class IdentityResolver:
    """
    Resolves the patient identifier for a freshly authorized session

    Order: access token claims, id token claims, then a depth-bounded walk
    over the server state looking for embedded JSON or compact tokens.
    """

    def __init__(self, max_depth: int = MAX_SCAN_DEPTH):
        self.max_depth = max_depth

    def resolve(self, access_token: Optional[str], id_token: Optional[str],
                server_state: Any) -> Optional[str]:
        """
        Resolve the patient identifier

        Args:
            access_token: Current access token, if any
            id_token: Current id token, if any
            server_state: Opaque protocol engine state

        Returns:
            Patient identifier or None
        """
        for label, token in (('access token', access_token), ('id token', id_token)):
            if not token:
                continue
            patient_id = ClaimExtractor.patient_id_from_token(token)
            if patient_id:
                logger.debug(f"Patient id resolved from {label} claims")
                return patient_id

        patient_id = self.scan(server_state)
        if patient_id:
            logger.debug("Patient id resolved from server state")
        return patient_id

    def scan(self, server_state: Any) -> Optional[str]:
        """Walk the server state and try every string as JSON and as a carrier of compact tokens"""
        for _, text in self._walk(server_state):
            patient_id = ClaimExtractor.patient_id_from_json(text)
            if patient_id:
                return patient_id

            for candidate in self.find_tokens(text):
                patient_id = ClaimExtractor.patient_id_from_token(candidate)
                if patient_id:
                    return patient_id

        return None

    def collect_tokens(self, server_state: Any) -> TokenPair:
        """
        Harvest an access / id token from the server state

        Labelled fields (access...token, id...token) win; other strings are
        inspected as JSON token responses or searched for compact tokens.
        """
        pair = TokenPair()

        for key, text in self._walk(server_state):
            label = (key or '').lower()

            if 'access' in label and 'token' in label:
                if pair.access_token is None and self.looks_like_token(text):
                    pair.access_token = text
            elif 'id' in label and 'token' in label:
                if pair.id_token is None and self.looks_like_token(text):
                    pair.id_token = text
            else:
                self._collect_from_text(text, pair)

            if pair.is_complete:
                break

        if pair:
            logger.debug(
                f"Collected tokens from server state: access_token={'present' if pair.access_token else 'missing'}, "
                f"id_token={'present' if pair.id_token else 'missing'}"
            )
        return pair

    def _collect_from_text(self, text: str, pair: TokenPair) -> None:
        document = ClaimExtractor.parse_json(text)
        if document:
            responses = [document]
            nested = document.get('tokenResponse')
            if isinstance(nested, dict):
                responses.append(nested)

            for response in responses:
                access_token = response.get('access_token')
                id_token = response.get('id_token')
                if pair.access_token is None and isinstance(access_token, str) and self.looks_like_token(access_token):
                    pair.access_token = access_token
                if pair.id_token is None and isinstance(id_token, str) and self.looks_like_token(id_token):
                    pair.id_token = id_token
            return

        for candidate in self.find_tokens(text):
            if pair.access_token is None:
                pair.access_token = candidate
            elif pair.id_token is None and candidate != pair.access_token:
                pair.id_token = candidate
            if pair.is_complete:
                return

    def _walk(self, value: Any, depth: int = 0, key: Optional[str] = None) -> Iterator[Tuple[Optional[str], str]]:
        """Yield (field name, string) pairs, never descending past max_depth"""
        if depth > self.max_depth:
            return

        if isinstance(value, str):
            yield key, value
            return

        if not isinstance(value, (dict, list, tuple)) and callable(getattr(value, 'to_dict', None)):
            value = value.to_dict()

        if isinstance(value, dict):
            for child_key, child in value.items():
                yield from self._walk(child, depth + 1, str(child_key))
        elif isinstance(value, (list, tuple)):
            for child in value:
                yield from self._walk(child, depth + 1, key)

    @staticmethod
    def find_tokens(text: str) -> List[str]:
        """Token-shaped substrings: 2-3 dot-delimited base64url segments"""
        if '.' not in text:
            return []
        return [match.group(0) for match in TOKEN_PATTERN.finditer(text)]

    @staticmethod
    def is_likely_token(text: str) -> bool:
        parts = text.split('.')
        if len(parts) < 2:
            return False
        return all(_SEGMENT_PATTERN.match(part) for part in parts)

    @classmethod
    def looks_like_token(cls, text: str) -> bool:
        return cls.is_likely_token(text) or len(text) > OPAQUE_TOKEN_MIN_LENGTH
