import logging
import struct
from typing import List, Tuple

from qpack_sim.ack import Ack, AckAggregator, AckKind
from qpack_sim.callback import DecodeCallback
from qpack_sim.codec import Header, HeaderCodec, NoPathIndexingStrategy
from qpack_sim.constant import DEFAULT_TABLE_SIZE_BYTES, SEQN_PREFIX_BYTES
from qpack_sim.frame import FrameFlags
from qpack_sim.header_queue import HeaderQueue
from qpack_sim.scheme.scheme import CompressionScheme
from qpack_sim.seqn import SequenceAssigner
from qpack_sim.stats import SimStats

logger = logging.getLogger(__name__)

SEQN_FMT = ">H"


class QPACKScheme(CompressionScheme):
    """Header compression where acks feed a commit epoch back to the encoder
    and blocks that evicted nothing may be decoded out of order."""

    def __init__(self, table_size_bytes: int = DEFAULT_TABLE_SIZE_BYTES) -> None:
        super().__init__()
        self.client = HeaderCodec(table_size_bytes)
        self.server = HeaderCodec(table_size_bytes)
        self.client.set_indexing_strategy(NoPathIndexingStrategy())
        self.server.set_indexing_strategy(NoPathIndexingStrategy())
        self.server_queue = HeaderQueue(self.server)
        self.seqn_assigner = SequenceAssigner()
        self.acks = AckAggregator(on_commit=self.client.set_commit_epoch)
        self.closed = False

    @property
    def commit_epoch(self) -> int:
        return self.acks.commit_epoch

    def get_ack(self, seqn: int) -> Ack:
        logger.debug("sending ack for seqn=%d", seqn)
        return Ack(AckKind.QPACK, seqn)

    def recv_ack(self, ack: Ack):
        assert ack is not None, "null ack"
        assert isinstance(ack, Ack) and ack.kind == AckKind.QPACK, \
            f"unexpected ack {ack!r}"
        logger.debug("received ack for seqn=%d", ack.seqn)
        # acks can arrive out of order, only the highest contiguous one
        # moves the commit epoch
        self.acks.recv(ack.seqn)

    def encode(self, new_packet: bool, headers: List[Header],
               stats: SimStats) -> Tuple[FrameFlags, bytes]:
        seqn = self.seqn_assigner.next()
        payload, evicted = self.client.encode(headers, seqn)
        stats.uncompressed += self.client.encoded_size.uncompressed
        stats.compressed += self.client.encoded_size.compressed
        # out of order decoding is safe only if nothing was evicted
        flags = FrameFlags.from_eviction(evicted)
        return flags, struct.pack(SEQN_FMT, seqn) + payload

    def decode(self, flags: FrameFlags, encoded_req: bytes, stats: SimStats,
               callback: DecodeCallback):
        assert len(encoded_req) >= SEQN_PREFIX_BYTES, "block without seqn prefix"
        seqn, = struct.unpack_from(SEQN_FMT, encoded_req)
        callback.seqn = seqn
        logger.debug("decoding request=%d header seqn=%d allow_ooo=%d",
                     callback.request_index, seqn, flags.allow_ooo)
        payload = encoded_req[SEQN_PREFIX_BYTES:]
        self.server_queue.enqueue_header_block(
            seqn, payload, len(payload), callback, flags.allow_ooo)
        callback.maybe_mark_hol_delay()
        if self.server_queue.queued_bytes > stats.max_queue_buffer_bytes:
            stats.max_queue_buffer_bytes = self.server_queue.queued_bytes

    def get_hol_block_count(self) -> int:
        return self.server_queue.hol_block_count

    def run_loop_callback(self):
        super().run_loop_callback()
        # the packet is out, headers its blocks inserted may be inserted
        # again by the next packet until they are acked
        self.client.on_flush_boundary()

    def close(self):
        assert self.server_queue.queued_bytes == 0, \
            f"{self.server_queue.queued_bytes} bytes still queued at teardown"
        self.closed = True
