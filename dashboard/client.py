"""HTTP client for the activity REST API."""
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

# Dashboard key -> REST path
ENDPOINTS = {
    'trades': '/api/trades',
    'burns': '/api/burns',
    'crafts': '/api/crafts',
    'morphs': '/api/morphs',
    'giftz': '/api/giftz',
    'users': '/api/users',
}

class DashboardAPIError(Exception):
    """Raised when the REST API cannot be reached or answers with an error"""
    def __init__(self, message: str, endpoint: Optional[str] = None):
        self.endpoint = endpoint
        super().__init__(message)

class ActivityAPIClient:
    """Thin requests based client for the REST layer"""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 30,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['accept'] = 'application/json'

    def fetch(self, key: str, period: str = 'all', refresh: bool = False) -> Dict[str, Any]:
        """Fetch one activity endpoint

        Raises:
            DashboardAPIError: On transport errors, HTTP errors or a non-JSON body
        """
        path = ENDPOINTS[key]
        params = {'period': period}
        if refresh:
            params['refresh'] = 'true'
        try:
            response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise DashboardAPIError(f"Request to {path} failed: {e}", path) from e
        except ValueError as e:
            raise DashboardAPIError(f"Invalid response from {path}: {e}", path) from e
