from abc import ABC, abstractmethod
from typing import List, Tuple

from qpack_sim.ack import Ack
from qpack_sim.callback import DecodeCallback
from qpack_sim.codec import Header
from qpack_sim.frame import FrameFlags
from qpack_sim.stats import SimStats


class CompressionScheme(ABC):
    """A paired header encoder (client) and decoder (server) for one
    simulated connection."""

    def __init__(self) -> None:
        self.packet_index = 0

    @abstractmethod
    def get_ack(self, seqn: int) -> Ack:
        """Build the ack the server sends back once block `seqn` is decoded."""
        pass

    @abstractmethod
    def recv_ack(self, ack: Ack):
        """Deliver an ack to the client."""
        pass

    @abstractmethod
    def encode(self, new_packet: bool, headers: List[Header],
               stats: SimStats) -> Tuple[FrameFlags, bytes]:
        pass

    @abstractmethod
    def decode(self, flags: FrameFlags, encoded_req: bytes, stats: SimStats,
               callback: DecodeCallback):
        pass

    @abstractmethod
    def get_hol_block_count(self) -> int:
        pass

    def run_loop_callback(self):
        """Called by the simulator once the current packet is flushed."""
        self.packet_index += 1

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        # keep the original error if the block body failed
        if exc_type is None:
            self.close()
        return False
