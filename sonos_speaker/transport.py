"""
Transport handle: one device address bound to a document fetcher and a SOAP client
"""

import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .config import SpeakerConfig
from .logging_utils import get_logger, log_action, log_cache_event
from .models import Service
from .soap import SoapClient
from .xml_document import Document, DocumentFetcher

logger = get_logger(__name__)

Params = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


def _ordered(params: Optional[Params]) -> List[Tuple[str, Any]]:
    if not params:
        return []
    if isinstance(params, Mapping):
        return list(params.items())
    return [(name, value) for name, value in params]


class TransportHandle:
    """
    Network access for one device.

    Owns a cache of parsed documents keyed by request path. Entries live for
    the lifetime of the handle unless evicted with :meth:`invalidate`.
    Concurrent first requests for the same path share a single fetch.
    """

    def __init__(self, address: str, config: Optional[SpeakerConfig] = None,
                 fetcher: Optional[DocumentFetcher] = None,
                 invoker: Optional[SoapClient] = None):
        self.address = address
        self.config = config or SpeakerConfig()
        self.fetcher = fetcher or DocumentFetcher(timeout_s=self.config.timeout_s)
        self.invoker = invoker or SoapClient(
            address, port=self.config.port, timeout_s=self.config.timeout_s)

        self._cache: Dict[str, Document] = {}
        self._cache_lock = threading.Lock()
        self._path_locks: Dict[str, threading.Lock] = {}

    def url(self, path: str) -> str:
        return self.config.base_url(self.address) + path

    def _lock_for(self, path: str) -> threading.Lock:
        with self._cache_lock:
            lock = self._path_locks.get(path)
            if lock is None:
                lock = self._path_locks[path] = threading.Lock()
            return lock

    def fetch_document(self, path: str) -> Document:
        """
        Return the document at ``path``, fetching it on first use.

        Raises:
            TransportError: if the fetch fails; nothing is cached in that case
        """
        cached = self._cache.get(path)
        if cached is not None:
            log_cache_event(logger, self.address, path, hit=True)
            return cached

        with self._lock_for(path):
            # Another caller may have filled it while we waited
            cached = self._cache.get(path)
            if cached is not None:
                log_cache_event(logger, self.address, path, hit=True)
                return cached

            log_cache_event(logger, self.address, path, hit=False)
            document = self.fetcher.get(self.url(path))
            with self._cache_lock:
                self._cache[path] = document
            return document

    def is_cached(self, path: str) -> bool:
        return path in self._cache

    def invalidate(self, path: Optional[str] = None) -> None:
        """Evict ``path`` from the cache, or everything when no path is given"""
        with self._cache_lock:
            if path is None:
                self._cache.clear()
            else:
                self._cache.pop(path, None)
        logger.debug(f"Invalidated {path or 'all documents'} for {self.address}")

    def invoke_action(self, service: Union[Service, str], action: str,
                      params: Optional[Params] = None) -> Dict[str, str]:
        """
        Send ``action`` to ``service`` with ``InstanceID=0`` prepended.

        Args:
            service: A Service, its key ("rendering-control") or its type ("RenderingControl")
            action: Action name
            params: Ordered mapping or sequence of (name, value) pairs

        Returns:
            The action's out-arguments

        Raises:
            InvalidServiceError: for unknown services, before any network call
            RemoteActionError: if the device rejects the action
            TransportError: on network failure
        """
        target = Service.parse(service)
        final = [("InstanceID", 0)]
        final.extend((name, value) for name, value in _ordered(params) if name != "InstanceID")

        log_action(logger, self.address, target.service_type, action, final)
        return self.invoker.call(target, action, final)

    def __repr__(self) -> str:
        return f"TransportHandle({self.address!r})"
