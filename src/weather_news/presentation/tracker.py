"""Latest-wins bookkeeping for overlapping refreshes."""

import itertools
from collections.abc import Hashable
from dataclasses import dataclass


@dataclass(frozen=True)
class Ticket:
    """Handle for one in-flight request: which slot, which parameters, when."""

    slot: str
    key: Hashable
    serial: int


class RequestTracker:
    """Decide whether a settled request may still write its result.

    Every ``begin`` supersedes earlier tickets for the same slot. A result is
    committed only while its ticket is the newest for the slot, so a slow
    earlier request can never overwrite fresher state.
    """

    def __init__(self) -> None:
        self._serials = itertools.count(1)
        self._latest: dict[str, Ticket] = {}

    def begin(self, slot: str, key: Hashable) -> Ticket:
        ticket = Ticket(slot=slot, key=key, serial=next(self._serials))
        self._latest[slot] = ticket
        return ticket

    def is_current(self, ticket: Ticket) -> bool:
        return self._latest.get(ticket.slot) == ticket

