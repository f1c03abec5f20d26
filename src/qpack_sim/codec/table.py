from collections import deque
from typing import Optional

from qpack_sim.constant import TABLE_ENTRY_OVERHEAD_BYTES


def entry_size(name: str, value: str) -> int:
    return len(name.encode()) + len(value.encode()) + TABLE_ENTRY_OVERHEAD_BYTES


class TableEntry:
    def __init__(self, abs_idx: int, name: str, value: str, seqn: int) -> None:
        self.abs_idx = abs_idx
        self.name = name
        self.value = value
        # extended seqn of the header block that inserted the entry
        self.seqn = seqn
        self.size_bytes = entry_size(name, value)


class DynamicTable:
    """Encoder side dynamic table.

    Entries get an absolute insertion index and are evicted oldest first
    once the table exceeds its capacity.
    """

    def __init__(self, capacity_bytes: int) -> None:
        self.capacity_bytes = capacity_bytes
        self.size_bytes = 0
        self.entries = deque()
        self.next_abs_idx = 0

    @property
    def drop_before(self) -> int:
        """Absolute index of the oldest entry still in the table."""
        return self.entries[0].abs_idx if self.entries else self.next_abs_idx

    def fits(self, name: str, value: str) -> bool:
        return entry_size(name, value) <= self.capacity_bytes

    def insert(self, name: str, value: str, seqn: int) -> int:
        """Insert an entry and return how many entries were evicted."""
        entry = TableEntry(self.next_abs_idx, name, value, seqn)
        assert entry.size_bytes <= self.capacity_bytes
        self.next_abs_idx += 1
        n_evicted = self._evict(self.capacity_bytes - entry.size_bytes)
        self.entries.append(entry)
        self.size_bytes += entry.size_bytes
        return n_evicted

    def _evict(self, target_size_bytes: int) -> int:
        n_evicted = 0
        while self.entries and self.size_bytes > target_size_bytes:
            entry = self.entries.popleft()
            self.size_bytes -= entry.size_bytes
            n_evicted += 1
        return n_evicted

    def set_capacity(self, capacity_bytes: int) -> int:
        self.capacity_bytes = capacity_bytes
        return self._evict(capacity_bytes)

    def find(self, name: str, value: str, usable) -> Optional[TableEntry]:
        """Return the newest entry matching name and value that `usable`
        accepts."""
        for entry in reversed(self.entries):
            if entry.name == name and entry.value == value and usable(entry):
                return entry
        return None

    def __len__(self):
        return len(self.entries)
