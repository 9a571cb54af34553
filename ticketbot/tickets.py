"""In-memory record of the ticket channels the bot currently manages."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional


class TicketKind(str, Enum):
    CHECKOUT = "checkout"
    SUPPORT = "support"


class TicketStatus(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class Ticket:
    channel_id: str
    channel_name: str
    number: int
    kind: TicketKind
    created_at: datetime
    status: TicketStatus
    message_id: Optional[str] = None
    requester_id: Optional[str] = None
    reason: Optional[str] = None
    checkout: Dict[str, Any] = field(default_factory=dict)
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None


class TicketStore:
    """Maps channel ids to tickets and hands out ticket numbers.

    Nothing is persisted; a restarted bot starts with an empty store and
    numbering begins again at 1.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._tickets: Dict[str, Ticket] = {}
        self._counter = 1

    def next_number(self) -> int:
        with self._lock:
            number = self._counter
            self._counter += 1
            return number

    def add(self, ticket: Ticket) -> Ticket:
        with self._lock:
            self._tickets[ticket.channel_id] = ticket
        return ticket

    def get(self, channel_id: str) -> Optional[Ticket]:
        with self._lock:
            return self._tickets.get(channel_id)

    def remove(self, channel_id: str) -> Optional[Ticket]:
        with self._lock:
            return self._tickets.pop(channel_id, None)

    def all(self) -> List[Ticket]:
        with self._lock:
            return list(self._tickets.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._tickets)

    def __contains__(self, channel_id: object) -> bool:
        with self._lock:
            return channel_id in self._tickets
