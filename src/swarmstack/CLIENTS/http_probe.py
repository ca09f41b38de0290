"""
Single-shot HTTP status probes.
"""
import ssl
from abc import ABC, abstractmethod
from http.client import HTTPException
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


class HttpProbe(ABC):
    """
    Fetches the status code of a URL.
    """

    @abstractmethod
    def status(self, url: str) -> Optional[int]:
        """Status code of a GET, or None when no response arrived at all."""


class UrllibHttpProbe(HttpProbe):
    """
    HttpProbe using urllib, without certificate verification since
    certificates are usually still being issued while we poll.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._context = ssl.create_default_context()
        self._context.check_hostname = False
        self._context.verify_mode = ssl.CERT_NONE

    def status(self, url: str) -> Optional[int]:
        request = Request(url, method="GET")
        try:
            with urlopen(request, timeout=self.timeout, context=self._context) as response:
                return response.status
        except HTTPError as e:
            return e.code
        except (URLError, HTTPException, OSError, ValueError):
            # Any transport failure means "not ready yet"
            return None
