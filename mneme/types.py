"""Identifiers, tenancy scopes and the bi-temporal time model.

Every memory and every edge carries a :class:`BiTemporal` stamp: history is
never overwritten, it is invalidated and a new version is created.
"""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_RANDOM_BITS = 80
_RANDOM_MASK = (1 << _RANDOM_BITS) - 1
_MAX_VALUE = (1 << 128) - 1


@dataclass(frozen=True, order=True)
class Id:
    """Monotonic, sortable 128-bit identifier laid out as a ULID.

    The top 48 bits hold a unix timestamp in milliseconds, the low 80 bits
    are random. The textual form is 26 Crockford base32 characters whose
    lexicographic order matches numeric order.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Id value must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value <= _MAX_VALUE:
            raise ValueError(f"Id value out of 128-bit range: {self.value}")

    def timestamp_ms(self) -> int:
        """Unix time in milliseconds encoded in the id."""
        return self.value >> _RANDOM_BITS

    def __str__(self) -> str:
        return "".join(
            _CROCKFORD[(self.value >> shift) & 0x1F] for shift in range(125, -1, -5)
        )

    def __repr__(self) -> str:
        return f"Id('{self}')"


class _IdGenerator:
    """Thread-safe generator producing strictly increasing ids."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._previous: Id | None = None

    def generate(self) -> Id:
        with self._lock:
            now_ms = time.time_ns() // 1_000_000
            previous = self._previous
            if previous is not None and now_ms <= previous.timestamp_ms():
                if previous.value & _RANDOM_MASK == _RANDOM_MASK:
                    raise OverflowError(
                        "id random bits overflowed within a single millisecond"
                    )
                generated = Id(previous.value + 1)
            else:
                generated = Id((now_ms << _RANDOM_BITS) | secrets.randbits(_RANDOM_BITS))
            self._previous = generated
            return generated


_ID_GENERATOR = _IdGenerator()


def new_id() -> Id:
    """Return a fresh id, strictly greater than every id returned before it."""
    return _ID_GENERATOR.generate()


@dataclass(frozen=True)
class BiTemporal:
    """Validity time (when the fact held in the world) and transaction time
    (when the system learned or forgot it). Open ends are ``None``."""

    valid_from: datetime
    tx_from: datetime
    valid_to: datetime | None = None
    tx_to: datetime | None = None

    @classmethod
    def now(cls) -> BiTemporal:
        """A stamp that is valid now and was just recorded."""
        t = datetime.now(timezone.utc)
        return cls(valid_from=t, tx_from=t)

    def is_live(self, at: datetime) -> bool:
        """True if the fact is valid at ``at`` and not yet superseded."""
        valid = self.valid_from <= at and (self.valid_to is None or at < self.valid_to)
        return valid and self.tx_to is None


@dataclass(frozen=True)
class Scope:
    """Tenancy and ownership boundary.

    ``user=None`` covers the whole tenant; ``session=None`` covers the whole user.
    """

    tenant: str
    user: str | None = None
    session: str | None = None

    @classmethod
    def global_scope(cls, tenant: str) -> Scope:
        """The tenant-wide scope."""
        return cls(tenant=tenant)

    def contains(self, other: Scope) -> bool:
        """True if this scope may read or learn from data stamped ``other``."""
        if self.tenant != other.tenant:
            return False
        if self.user is None:
            return True
        if other.user is None or self.user != other.user:
            return False
        if self.session is None:
            return True
        return other.session is not None and self.session == other.session


@dataclass(frozen=True)
class _IdRef:
    id: Id

    def __str__(self) -> str:
        return str(self.id)


class MemoryRef(_IdRef):
    """Reference to a memory."""


class SourceRef(_IdRef):
    """Reference to a source document."""


class EpisodeRef(_IdRef):
    """Reference to an agent episode."""


class OutcomeRef(_IdRef):
    """Reference to a recorded outcome."""


class ArtifactRef(_IdRef):
    """Reference to a policy artifact."""


class TrajectoryRef(_IdRef):
    """Reference to an agent trajectory."""


class ProposalId(_IdRef):
    """Identifier of a procedural proposal."""