# smart_session/models/request_models.py
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class RequestConfig:
    """
    Configuration for HTTP requests
    Used by HTTPManager for consistent request handling
    """

    # Request settings
    timeout: int = 30
    verify_ssl: bool = True
    max_retries: int = 3
    retry_delay: float = 1.0

    # Headers
    default_headers: Dict[str, str] = field(default_factory=dict)
    user_agent: str = "smart-session/1.0"

    # Label used in log lines (usually the client id)
    client_label: str = ""

    def get_request_kwargs(self) -> Dict[str, Any]:
        """
        Get kwargs for requests library call

        Returns:
            Dictionary of kwargs for requests
        """
        return {
            "timeout": self.timeout,
            "verify": self.verify_ssl,
            "headers": self._get_headers(),
        }

    def _get_headers(self) -> Dict[str, str]:
        """Build headers with user agent"""
        headers = self.default_headers.copy()
        if "User-Agent" not in headers:
            headers["User-Agent"] = self.user_agent
        return headers
