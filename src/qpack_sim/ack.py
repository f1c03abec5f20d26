import bisect
import logging
from enum import Enum
from typing import Callable, List, Optional

from qpack_sim.constant import SEQN_MOD
from qpack_sim.seqn import unwrap_seqn

logger = logging.getLogger(__name__)


class AckKind(Enum):
    QPACK = "qpack"


class Ack:
    """Acknowledgment of one decoded header block."""

    __slots__ = ("_kind", "_seqn")

    def __init__(self, kind: AckKind, seqn: int) -> None:
        assert isinstance(kind, AckKind)
        assert 0 <= seqn < SEQN_MOD, f"seqn {seqn} is not a 16-bit value"
        self._kind = kind
        self._seqn = seqn

    @property
    def kind(self) -> AckKind:
        return self._kind

    @property
    def seqn(self) -> int:
        return self._seqn

    def __eq__(self, other):
        return isinstance(other, Ack) and self.kind == other.kind and \
            self.seqn == other.seqn

    def __hash__(self):
        return hash((self._kind, self._seqn))

    def __repr__(self):
        return f"Ack({self._kind.name}, seqn={self._seqn})"


class AckAggregator:
    """Fold acks that may arrive out of order into a commit epoch.

    The commit epoch is the highest sequence number such that it and every
    sequence number below it have been acked. Acks beyond a gap wait in a
    sorted pending list until the gap closes.
    """

    def __init__(self, on_commit: Optional[Callable[[int], None]] = None) -> None:
        self.on_commit = on_commit
        self.commit_epoch = -1
        self.pending: List[int] = []

    def recv(self, seqn: int) -> bool:
        """Apply an ack for a 16-bit sequence number.

        Return True if the commit epoch advanced.
        """
        ext_seqn = unwrap_seqn(seqn, self.commit_epoch + 1)
        if ext_seqn == self.commit_epoch + 1:
            self.commit_epoch = ext_seqn
            while self.pending and self.pending[0] == self.commit_epoch + 1:
                self.commit_epoch = self.pending.pop(0)
            logger.debug("commit epoch advanced to %d", self.commit_epoch)
            if self.on_commit is not None:
                self.on_commit(self.commit_epoch)
            return True
        if ext_seqn <= self.commit_epoch:
            logger.debug("ignore stale ack seqn=%d, commit epoch=%d",
                         seqn, self.commit_epoch)
            return False
        idx = bisect.bisect_left(self.pending, ext_seqn)
        if idx < len(self.pending) and self.pending[idx] == ext_seqn:
            logger.debug("ignore duplicate ack seqn=%d", seqn)
            return False
        self.pending.insert(idx, ext_seqn)
        return False
