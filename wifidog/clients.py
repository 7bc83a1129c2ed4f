"""The list of clients connected to the gateway, guarded by a lock."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass
class Counters:
    """Bandwidth counters of one client, in bytes."""

    incoming: int = 0
    outgoing: int = 0
    incoming_history: int = 0
    outgoing_history: int = 0
    last_updated: int = 0


@dataclass(eq=False)
class Client:
    """One connected client; clients compare by identity."""

    ip: str
    mac: str
    token: str
    fw_connection_state: int = 0
    fd: int = 0
    counters: Counters = field(default_factory=Counters)


class ClientList:
    """Ordered collection of connected clients.

    Callers that need a consistent view across several calls hold
    :meth:`locked` around them.
    """

    def __init__(self) -> None:
        self._clients: list[Client] = []
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[Client]:
        return iter(list(self._clients))

    def __len__(self) -> int:
        return len(self._clients)

    def first(self) -> Client | None:
        """Return the oldest client, or None when the list is empty."""
        return self._clients[0] if self._clients else None

    def clear(self) -> None:
        """Forget every client."""
        self._clients.clear()

    def append(self, ip: str, mac: str, token: str) -> Client:
        """Add a new client at the end of the list and return it."""
        client = Client(ip=ip, mac=mac, token=token)
        client.counters.last_updated = int(time.time())
        self._clients.append(client)
        log.info("Added a new client to linked list: IP: %s Token: %s", ip, token)
        return client

    def find(self, ip: str, mac: str) -> Client | None:
        """Return the first client with both this IP and this MAC."""
        return next((c for c in self._clients if c.ip == ip and c.mac == mac), None)

    def find_by_ip(self, ip: str) -> Client | None:
        """Return the first client with this IP."""
        return next((c for c in self._clients if c.ip == ip), None)

    def find_by_mac(self, mac: str) -> Client | None:
        """Return the first client with this MAC."""
        return next((c for c in self._clients if c.mac == mac), None)

    def find_by_token(self, token: str) -> Client | None:
        """Return the first client holding this token."""
        return next((c for c in self._clients if c.token == token), None)

    def delete(self, client: Client) -> None:
        """Remove ``client``; an empty list or an unknown client is logged."""
        if not self._clients:
            log.error("Node list empty!")
            return
        for pos, candidate in enumerate(self._clients):
            if candidate is client:
                del self._clients[pos]
                return
        log.error("Node to delete could not be found.")

    @contextmanager
    def locked(self) -> Iterator[ClientList]:
        """Hold the list's lock for the duration of the block."""
        log.debug("Locking client list")
        self._lock.acquire()
        log.debug("Client list locked")
        try:
            yield self
        finally:
            log.debug("Unlocking client list")
            self._lock.release()
            log.debug("Client list unlocked")