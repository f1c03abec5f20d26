import logging
from typing import Dict, Set

from qpack_sim.codec import HeaderCodec, HeaderDecodeError
from qpack_sim.seqn import unwrap_seqn

logger = logging.getLogger(__name__)


class HeaderQueue:
    """Receiver side reorder buffer in front of the header decoder.

    Blocks are decoded in sequence number order unless the sender marked
    them safe to decode out of order. A block that is neither next in line
    nor out-of-order safe waits in the queue and counts as one head-of-line
    block.
    """

    def __init__(self, codec: HeaderCodec) -> None:
        self.codec = codec
        self.next_seqn = 0
        # ext seqn -> (payload, length, callback)
        self.queue: Dict[int, tuple] = {}
        self.decoded_ooo: Set[int] = set()
        self.queued_bytes = 0
        self.hol_block_count = 0

    def enqueue_header_block(self, seqn: int, payload: bytes, length: int,
                             callback, allow_ooo: bool):
        ext_seqn = unwrap_seqn(seqn, self.next_seqn)
        if ext_seqn < self.next_seqn or ext_seqn in self.decoded_ooo or \
                ext_seqn in self.queue:
            raise HeaderDecodeError(
                f"bad sequence number {seqn}, next expected {self.next_seqn}")
        if ext_seqn == self.next_seqn:
            self._decode_block(ext_seqn, payload, callback)
            self._advance()
        elif allow_ooo:
            logger.debug("decode seqn=%d out of order, next expected %d",
                         ext_seqn, self.next_seqn)
            self._decode_block(ext_seqn, payload, callback)
            self.decoded_ooo.add(ext_seqn)
        else:
            logger.debug("hold seqn=%d, next expected %d",
                         ext_seqn, self.next_seqn)
            self.queue[ext_seqn] = (payload, length, callback)
            self.queued_bytes += length
            self.hol_block_count += 1

    def _decode_block(self, ext_seqn, payload, callback):
        headers = self.codec.decode(ext_seqn, payload)
        if callback is not None:
            callback.on_headers_complete(headers)

    def _advance(self):
        self.next_seqn += 1
        while True:
            if self.next_seqn in self.decoded_ooo:
                self.decoded_ooo.remove(self.next_seqn)
                self.next_seqn += 1
            elif self.next_seqn in self.queue:
                payload, length, callback = self.queue.pop(self.next_seqn)
                self.queued_bytes -= length
                self._decode_block(self.next_seqn, payload, callback)
                self.next_seqn += 1
            else:
                break
