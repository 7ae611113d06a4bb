"""
Table allocation.

Picks the smallest table that seats the party and has no overlapping
reservation or table-bound private event. Read-only: the caller commits the
booking through the store's atomic insert.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Union

from domain.models import Interval, PrivateEvent, Reservation, Table


logger = logging.getLogger(__name__)

Blocker = Union[Reservation, PrivateEvent]


def table_sort_key(table: Table):
    """Smallest capacity first; equal capacities ordered by table id."""
    return table.capacity, table.id


class TableAllocator:
    """
    Allocation over a snapshot of one day's tables, reservations and events.

    The snapshot is indexed by table id once so that enumerating a whole day
    of slots does not rescan every reservation for every slot.
    """

    def __init__(
        self,
        tables: Iterable[Table],
        reservations: Iterable[Reservation] = (),
        events: Iterable[PrivateEvent] = (),
    ):
        self.tables: List[Table] = sorted(tables, key=table_sort_key)
        self._blockers: Dict[str, List[Blocker]] = defaultdict(list)

        for reservation in reservations:
            if reservation.blocks_table:
                self._blockers[reservation.table_id].append(reservation)

        for event in events:
            if event.is_active and event.table_id is not None:
                self._blockers[event.table_id].append(event)

    def candidates(self, party_size: int) -> List[Table]:
        """Tables that can seat the party, in allocation order."""
        return [table for table in self.tables if table.capacity >= party_size]

    def conflicts(self, table: Table, interval: Interval) -> List[Blocker]:
        """Reservations and events on ``table`` that overlap ``interval``."""
        return [
            blocker for blocker in self._blockers.get(table.id, [])
            if blocker.overlaps(interval.start, interval.end)
        ]

    def is_free(self, table: Table, interval: Interval) -> bool:
        return not self.conflicts(table, interval)

    def allocate(self, interval: Interval, party_size: int) -> Optional[Table]:
        """
        Find a table for the interval.

        Args:
            interval: UTC interval of the seating
            party_size: Number of guests

        Returns:
            The smallest free table that fits, or None
        """
        for table in self.candidates(party_size):
            if self.is_free(table, interval):
                return table
        return None

    def free_tables(self, interval: Interval, party_size: int) -> List[Table]:
        """Every free table that fits, in allocation order."""
        return [table for table in self.candidates(party_size) if self.is_free(table, interval)]


def allocate(
    interval: Interval,
    party_size: int,
    tables: Iterable[Table],
    reservations: Iterable[Reservation] = (),
    events: Iterable[PrivateEvent] = (),
) -> Optional[Table]:
    """One-shot allocation without keeping the index around."""
    return TableAllocator(tables, reservations, events).allocate(interval, party_size)
