# smart_session/auth/claims.py
# -*- coding: utf-8 -*-
"""
Claim extraction for SMART-on-FHIR credentials
Decodes compact tokens and JSON payloads and derives the patient identifier from their claims
"""

import base64
import json
from typing import Dict, Any, Optional

from ..utils.logger import logger

PATIENT_REFERENCE_MARKER = 'Patient/'


class ClaimExtractor:
    """Claim decoding utilities shared by every identity strategy"""

    # Plain string claims, checked in priority order
    PATIENT_ID_CLAIMS = ('patient', 'patient_id', 'patientId')

    # Reference claims that only count when they point at a Patient resource
    PATIENT_REFERENCE_CLAIMS = ('sub', 'fhirUser')

    @staticmethod
    def decode(token: str) -> Optional[Dict[str, Any]]:
        """
        Decode the claims segment of a compact token

        Args:
            token: Dot-delimited token (header.payload[.signature])

        Returns:
            Claims dictionary or None if the token cannot be decoded
        """
        if not isinstance(token, str):
            return None

        parts = token.split('.')
        if len(parts) < 2:
            return None

        # base64url -> base64, restore stripped padding
        payload_b64 = parts[1].replace('-', '+').replace('_', '/')
        padding = len(payload_b64) % 4
        if padding:
            payload_b64 += '=' * (4 - padding)

        try:
            payload_json = base64.b64decode(payload_b64, validate=True).decode('utf-8')
            claims = json.loads(payload_json)
        except ValueError as e:
            # binascii.Error, UnicodeDecodeError and JSONDecodeError are all ValueErrors
            logger.debug(f"Token payload could not be decoded: {e}")
            return None

        if not isinstance(claims, dict):
            return None

        logger.debug(f"Token decoded - claims: {list(claims.keys())}")
        return claims

    @staticmethod
    def parse_json(text: str) -> Optional[Dict[str, Any]]:
        """
        Parse arbitrary text as a JSON object

        Returns:
            Dictionary or None when the text is not a JSON object
        """
        if not isinstance(text, str):
            return None

        stripped = text.strip()
        if not stripped.startswith('{'):
            return None

        try:
            data = json.loads(stripped)
        except ValueError:
            return None

        return data if isinstance(data, dict) else None

    @staticmethod
    def patient_id(claims: Optional[Dict[str, Any]]) -> Optional[str]:
        """
        Resolve the patient identifier from a claims map; first match wins:
        patient, patient_id, patientId, sub / fhirUser referencing Patient/,
        nested patient.id
        """
        if not claims:
            return None

        for key in ClaimExtractor.PATIENT_ID_CLAIMS:
            value = claims.get(key)
            if isinstance(value, str):
                return value

        for key in ClaimExtractor.PATIENT_REFERENCE_CLAIMS:
            value = claims.get(key)
            if isinstance(value, str) and PATIENT_REFERENCE_MARKER in value:
                identifier = value.rsplit('/', 1)[-1]
                if identifier:
                    return identifier

        patient = claims.get('patient')
        if isinstance(patient, dict):
            nested_id = patient.get('id')
            if isinstance(nested_id, str):
                return nested_id

        return None

    @staticmethod
    def patient_id_from_token(token: Optional[str]) -> Optional[str]:
        """Decode a compact token and resolve the patient identifier from its claims"""
        if not token:
            return None
        return ClaimExtractor.patient_id(ClaimExtractor.decode(token))

    @staticmethod
    def patient_id_from_json(text: str) -> Optional[str]:
        """Parse text as JSON and resolve the patient identifier from it"""
        return ClaimExtractor.patient_id(ClaimExtractor.parse_json(text))
