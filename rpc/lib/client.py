"""Shared HTTP plumbing for the chain API clients.

Both chains are queried over plain HTTP with a per-request timeout and a
fixed-delay retry policy. Any failure (transport error, timeout, non-2xx status,
unparseable body or an error payload returned with a 2xx status) counts toward
the retry budget; once it is exhausted the last error propagates to the caller.
"""
import logging
from typing import Any, Callable, Dict, Optional

import backoff
import requests

logger = logging.getLogger(__name__)

class ChainAPIError(Exception):
    """Base exception for chain API errors"""
    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        self.code = code
        self.method = method
        super().__init__(f"API Error [{code}] in {method}: {message}" if code is not None else message)

class NodeConnectionError(ChainAPIError):
    """Raised when the request could not be completed (timeout, HTTP or transport error)"""
    pass

class NodeApplicationError(ChainAPIError):
    """Raised when the API answered but reported an error in the response body"""
    pass

class RequestMethod:
    """Descriptor class for remote query types"""
    def __init__(self, method_name: str):
        self.method_name = method_name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self

        def caller(*args, **kwargs) -> Any:
            return obj._call_method(self.method_name, *args, **kwargs)

        caller.__name__ = self.method_name
        return caller

class ChainClient:
    """Base client: session handling, timeout and fixed-delay retries"""

    def __init__(self, request_timeout: float = 30, max_retries: int = 3,
                 retry_delay: float = 2, session: Optional[requests.Session] = None):
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self.session = session or requests.Session()
        self.session.headers['accept'] = 'application/json'

        # Request ID counter
        self._request_id = 0

    def _get_request_id(self) -> int:
        """Get unique request ID"""
        self._request_id += 1
        return self._request_id

    def _call_method(self, method: str, *args, **kwargs) -> Any:
        raise NotImplementedError

    def _with_retry(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run ``func`` with up to ``max_retries`` retries spaced ``retry_delay`` apart"""
        retrying = backoff.on_exception(
            backoff.constant,
            ChainAPIError,
            max_tries=self.max_retries + 1,
            interval=self.retry_delay,
            jitter=None,
            logger=logger,
        )(func)
        return retrying(*args, **kwargs)

    def _send(self, method: str, http_method: str, url: str,
              params: Optional[Dict[str, Any]] = None,
              payload: Optional[Dict[str, Any]] = None) -> Any:
        """Issue one HTTP request and decode the JSON body

        Raises:
            NodeConnectionError: Timeout, connection failure, HTTP error or bad body
        """
        try:
            response = self.session.request(
                http_method,
                url,
                params=params,
                json=payload,
                timeout=self.request_timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout as e:
            raise NodeConnectionError(
                f"Request timed out after {self.request_timeout} seconds",
                method=method
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NodeConnectionError(
                f"Failed to connect to {url}",
                method=method
            ) from e
        except requests.exceptions.HTTPError as e:
            raise NodeConnectionError(
                f"HTTP error occurred: {str(e)}",
                method=method
            ) from e
        except requests.exceptions.RequestException as e:
            raise NodeConnectionError(
                f"Request failed: {str(e)}",
                method=method
            ) from e
        except ValueError as e:
            raise NodeConnectionError(
                f"Invalid response format: {str(e)}",
                method=method
            ) from e
