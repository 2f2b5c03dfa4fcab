"""
HTTP fetch and query helpers for device XML documents
"""

import logging
import threading
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import DEFAULT_USER_AGENT
from .exceptions import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

_SESSION: Optional[requests.Session] = None
_SESSION_LOCK = threading.Lock()


def http_session() -> requests.Session:
    """Process-wide session; connections are pooled per device."""
    global _SESSION
    if _SESSION is None:
        with _SESSION_LOCK:
            if _SESSION is None:
                session = requests.Session()
                # Retry policy belongs to callers, so the adapter never retries
                adapter = HTTPAdapter(pool_connections=8, pool_maxsize=16, max_retries=0)
                session.mount("http://", adapter)
                session.mount("https://", adapter)
                session.headers.update({"User-Agent": DEFAULT_USER_AGENT})
                _SESSION = session
    return _SESSION


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class Document:
    """Thin queryable wrapper around an XML element.

    Tag lookups ignore namespaces, so the same calls work on the namespaced
    device description and on the bare topology document.
    """

    def __init__(self, element: ET.Element):
        self.element = element

    @classmethod
    def from_string(cls, text) -> "Document":
        try:
            return cls(ET.fromstring(text))
        except ET.ParseError as e:
            raise MalformedResponseError(f"Invalid XML: {e}") from e

    @property
    def tag(self) -> str:
        return _local_name(self.element.tag)

    @property
    def text(self) -> str:
        return (self.element.text or "").strip()

    def find_tag(self, name: str) -> Optional["Document"]:
        """First descendant called ``name``, or None"""
        if self.tag == name:
            return self
        found = self.element.find(f".//{{*}}{name}")
        return Document(found) if found is not None else None

    def get_tag(self, name: str) -> "Document":
        """
        Locate a descendant tag that must be present.

        Raises:
            MalformedResponseError: if no such tag exists
        """
        found = self.find_tag(name)
        if found is None:
            raise MalformedResponseError(f"Expected <{name}> inside <{self.tag}>")
        return found

    def get_tags(self, name: str) -> List["Document"]:
        """All descendants called ``name``, in document order"""
        return [Document(e) for e in self.element.iterfind(f".//{{*}}{name}")]

    def get_attributes(self) -> Dict[str, str]:
        return {_local_name(k): v for k, v in self.element.attrib.items()}

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"<Document {self.tag}>"


class DocumentFetcher:
    """Fetch a URL and parse the body as XML"""

    def __init__(self, timeout_s: float = 5.0, session: Optional[requests.Session] = None):
        self.timeout_s = timeout_s
        self.session = session or http_session()

    def get(self, url: str) -> Document:
        """
        GET ``url`` and return the parsed document.

        Raises:
            TransportError: on connection failure, timeout or non-2xx status
            MalformedResponseError: if the body is not XML
        """
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout_s)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Timeout fetching {url}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to fetch {url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TransportError(f"GET {url} returned status {response.status_code}")

        return Document.from_string(response.content)
