from qpack_sim.constant import SEQN_MOD

HALF_SEQN_SPACE = SEQN_MOD // 2


def unwrap_seqn(seqn: int, expected: int) -> int:
    """Map a 16-bit sequence number to the extended value closest to
    `expected`.

    Senders never have more than half the sequence space outstanding, so the
    closest candidate is the one that was meant.
    """
    assert 0 <= seqn < SEQN_MOD, f"seqn {seqn} is not a 16-bit value"
    delta = (seqn - expected + HALF_SEQN_SPACE) % SEQN_MOD - HALF_SEQN_SPACE
    return expected + delta


class SequenceAssigner:
    """Hand out one sequence number per encoded header block."""

    def __init__(self) -> None:
        self.next_seqn = 0

    def next(self) -> int:
        seqn = self.next_seqn
        self.next_seqn = (self.next_seqn + 1) % SEQN_MOD
        return seqn
