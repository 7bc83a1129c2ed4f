"""IP access-control lists made of CIDR blocks."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum

log = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*[+-]?\d+")
_MASK32 = 0xFFFFFFFF


class AclAction(IntEnum):
    """What to do with a matching client."""

    PERMIT = 1
    DENY = 2


class AclError(ValueError):
    """An ACL entry could not be built."""


@dataclass(frozen=True)
class AclEntry:
    """One rule: the network ``addr``/``length`` and the action for it."""

    addr: int
    length: int
    action: AclAction


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def scan_cidr(value: str) -> tuple[int, int]:
    """Parse 'a.b.c.d' or 'a.b.c.d/len' into a 32-bit address and prefix length."""
    rest = value
    octets = [_atoi(rest)]
    for _ in range(3):
        dot = rest.find(".")
        if dot < 0:
            raise AclError(f"Invalid IP address format: {value!r}")
        rest = rest[dot + 1 :]
        octets.append(_atoi(rest))
    slash = rest.find("/")
    length = 32 if slash < 0 else _atoi(rest[slash + 1 :])
    if any(not 0 <= octet <= 255 for octet in octets) or not 0 <= length <= 32:
        raise AclError(f"Invalid IP address format: {value!r}")
    a, b, c, d = octets
    return (a << 24) + (b << 16) + (c << 8) + d, length


def is_in_cidr_block(addr1: int, len1: int, addr2: int, len2: int) -> bool:
    """True when network ``addr2``/``len2`` lies inside ``addr1``/``len1``."""
    if len2 < len1:
        log.error("IP Address must be more specific than network block")
        return False
    mask = (((1 << len1) - 1) << (32 - len1)) & _MASK32
    return (addr1 & mask) == (addr2 & mask)


@dataclass
class Acl:
    """Ordered rules; the first block containing the client decides."""

    entries: list[AclEntry] = field(default_factory=list)

    def add(self, cidr: str, action: AclAction | int) -> Acl:
        """Append a rule for ``cidr`` and return the list itself."""
        addr, length = scan_cidr(cidr)
        try:
            checked = AclAction(action)
        except ValueError as exc:
            raise AclError(f"Invalid acl action: {action!r}") from exc
        self.entries.append(AclEntry(addr, length, checked))
        return self

    def __iter__(self) -> Iterator[AclEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def match(self, address: str) -> AclAction:
        """Action for a client at ``address``; DENY when no rule matches."""
        try:
            addr, length = scan_cidr(address)
        except AclError:
            return AclAction.DENY
        for entry in self.entries:
            if is_in_cidr_block(entry.addr, entry.length, addr, length):
                return entry.action
        return AclAction.DENY