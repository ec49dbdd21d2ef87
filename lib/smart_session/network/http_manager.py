# smart_session/network/http_manager.py
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.request_models import RequestConfig
from ..utils.logger import logger


class HTTPManager:
    """
    Centralized HTTP request manager

    Handles all HTTP requests made by the session lifecycle with:
    - Retry logic
    - Error handling
    - Request/response logging
    """

    def __init__(self, config: Optional[RequestConfig] = None):
        """
        Initialize HTTP manager

        Args:
            config: Request configuration
        """
        self.config = config or RequestConfig()
        self._session = None
        self._setup_session()

    def _setup_session(self) -> None:
        """Setup requests session with retry strategy"""
        self._session = requests.Session()

        # Revocation is a POST and idempotent per RFC 7009, so it is retried too
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=self.config.retry_delay,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS", "POST"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def get(self, url: str, operation: str = "api", **kwargs) -> requests.Response:
        """
        Perform GET request

        Args:
            url: Request URL
            operation: Operation label (discovery, revocation, ...) for log output
            **kwargs: Additional arguments for requests

        Returns:
            requests.Response object

        Raises:
            requests.exceptions.RequestException: On request failure
        """
        return self._make_request("GET", url, operation, **kwargs)

    def post(
        self,
        url: str,
        operation: str = "api",
        data: Any = None,
        json_data: Any = None,
        **kwargs,
    ) -> requests.Response:
        """
        Perform POST request

        Args:
            url: Request URL
            operation: Operation label for log output
            data: Request data (form data or raw)
            json_data: JSON data to send
            **kwargs: Additional arguments for requests

        Returns:
            requests.Response object
        """
        if json_data is not None:
            kwargs["json"] = json_data
        elif data is not None:
            kwargs["data"] = data

        return self._make_request("POST", url, operation, **kwargs)

    def _make_request(self, method: str, url: str, operation: str, **kwargs) -> requests.Response:
        """
        Make HTTP request with full configuration support
        """
        request_kwargs = self.config.get_request_kwargs()

        # Merge headers instead of replacing the defaults
        extra_headers = kwargs.pop("headers", None)
        if extra_headers:
            request_kwargs["headers"].update(extra_headers)

        request_kwargs.update(kwargs)

        self._log_request(method, url, operation, request_kwargs)

        try:
            response = self._session.request(method, url, **request_kwargs)

            self._log_response(response)

            # Raises for 4xx/5xx
            response.raise_for_status()

            return response

        except requests.exceptions.Timeout as e:
            logger.error(
                f"{self.config.client_label}: Timeout ({request_kwargs.get('timeout', 'unknown')}s) "
                f"for {operation} request to {url}: {e}"
            )
            raise

        except requests.exceptions.ConnectionError as e:
            logger.error(
                f"{self.config.client_label}: Connection error for {operation} request to {url}: {e}"
            )
            raise

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            logger.error(
                f"{self.config.client_label}: HTTP {status} error for {operation} request to {url}: {e}"
            )
            raise

        except requests.exceptions.RequestException as e:
            logger.error(
                f"{self.config.client_label}: Request error for {operation} request to {url}: {e}"
            )
            raise

    def _log_request(self, method: str, url: str, operation: str, kwargs: Dict[str, Any]) -> None:
        """Log request details"""
        timeout = kwargs.get("timeout", self.config.timeout)

        # Truncate URL for readability if very long
        display_url = url if len(url) <= 100 else f"{url[:80]}...{url[-17:]}"

        logger.debug(
            f"{self.config.client_label}: {method} {operation} -> {display_url} [timeout: {timeout}s]"
        )

    def _log_response(self, response: requests.Response) -> None:
        """Log response details with timing information"""
        elapsed = ""
        if hasattr(response, "elapsed") and response.elapsed is not None:
            elapsed_ms = int(response.elapsed.total_seconds() * 1000)
            elapsed = f" [{elapsed_ms}ms]"

        content_type = response.headers.get("Content-Type", "unknown")

        size = len(response.content)
        size_display = f"{size} bytes"
        if size > 1024:
            size_display = f"{size / 1024:.2f} KB"

        logger.debug(
            f"{self.config.client_label}: Response {response.status_code} "
            f"({size_display}, {content_type}){elapsed}"
        )

    def close(self) -> None:
        """Close the session"""
        if self._session:
            self._session.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()


class HTTPManagerFactory:
    """
    Factory for creating HTTP managers configured for a SMART client
    """

    @staticmethod
    def create_for_client(client_id: str, **config_kwargs) -> HTTPManager:
        """
        Create HTTP manager configured for a client

        Args:
            client_id: OAuth client id, used as log label
            **config_kwargs: Additional RequestConfig parameters

        Returns:
            Configured HTTPManager instance
        """
        defaults = {
            "timeout": 30,
            "max_retries": 2,
            "default_headers": {"Accept": "application/json"},
        }
        defaults.update(config_kwargs)
        defaults["client_label"] = client_id

        return HTTPManager(RequestConfig(**defaults))
