import logging
from typing import List, Optional

from qpack_sim.callback import DecodeCallback
from qpack_sim.codec import Header
from qpack_sim.constant import ACK_SIZE_BYTES, SEQN_PREFIX_BYTES
from qpack_sim.link import ReorderLink
from qpack_sim.packet import Packet
from qpack_sim.scheme import QPACKScheme
from qpack_sim.stats import BlockRecorder, SimStats

logger = logging.getLogger(__name__)


class CompressionSimulator:
    """Send request header blocks from client to server over a reordering
    link and return acks over a second one, one tick per millisecond."""

    def __init__(self, requests: List[List[Header]], save_dir: Optional[str] = None,
                 scheme: Optional[QPACKScheme] = None,
                 prop_delay_ms=25, jitter_ms=10, requests_per_ms=1,
                 seed=42) -> None:
        assert requests_per_ms >= 1
        self.requests = requests
        self.save_dir = save_dir
        self.scheme = scheme if scheme is not None else QPACKScheme()
        self.requests_per_ms = requests_per_ms
        self.data_link = ReorderLink('datalink', prop_delay_ms, jitter_ms, seed)
        self.ack_link = ReorderLink('acklink', prop_delay_ms, jitter_ms,
                                    None if seed is None else seed + 1)
        self.stats = SimStats()
        self.recorder = BlockRecorder(save_dir)
        self.callbacks: List[DecodeCallback] = []
        self.next_request = 0
        self.pkt_id = 0
        self.ts_ms = 0

    def _new_pkt(self, pkt_type, size_bytes, app_data):
        pkt = Packet(self.pkt_id, pkt_type, size_bytes, app_data)
        pkt.ts_sent_ms = self.ts_ms
        self.pkt_id += 1
        return pkt

    def _send_requests(self):
        blocks = []
        size_bytes = 0
        while self.next_request < len(self.requests) and \
                len(blocks) < self.requests_per_ms:
            request_index = self.next_request
            flags, block = self.scheme.encode(
                not blocks, self.requests[request_index], self.stats)
            seqn = int.from_bytes(block[:SEQN_PREFIX_BYTES], "big")
            self.recorder.on_block_sent(self.ts_ms, request_index, seqn,
                                        len(block), flags.allow_ooo)
            if flags.allow_ooo:
                self.stats.ooo_allowed += 1
            blocks.append((request_index, flags, block))
            size_bytes += len(block)
            self.next_request += 1
            self.stats.requests += 1
        if blocks:
            self.data_link.push(self._new_pkt(Packet.DATA_PKT, size_bytes, blocks))
            self.stats.packets += 1

    def _on_decoded(self, callback: DecodeCallback):
        callback.ts_decoded_ms = self.ts_ms
        self.stats.hol_delays_ms.append(callback.hol_delay_ms())
        self.recorder.on_block_decoded(self.ts_ms, callback.request_index,
                                       callback.seqn, callback.hol_delay_ms())
        ack = self.scheme.get_ack(callback.seqn)
        self.ack_link.push(self._new_pkt(Packet.ACK_PKT, ACK_SIZE_BYTES, ack))

    def _receive_blocks(self):
        pkt = self.data_link.pull()
        while pkt is not None:
            assert pkt.is_data_pkt()
            pkt.ts_rcvd_ms = self.ts_ms
            for request_index, flags, block in pkt.app_data:
                callback = DecodeCallback(request_index, self.ts_ms,
                                          on_done=self._on_decoded)
                self.callbacks.append(callback)
                self.scheme.decode(flags, block, self.stats, callback)
                self.recorder.on_block_rcvd(
                    self.ts_ms, request_index, callback.seqn, len(block),
                    flags.allow_ooo, self.scheme.server_queue.queued_bytes)
            pkt = self.data_link.pull()

    def _receive_acks(self):
        pkt = self.ack_link.pull()
        while pkt is not None:
            assert pkt.is_ack_pkt()
            pkt.ts_rcvd_ms = self.ts_ms
            self.scheme.recv_ack(pkt.app_data)
            self.stats.acks += 1
            self.recorder.on_ack_rcvd(self.ts_ms, pkt.app_data.seqn,
                                      self.scheme.commit_epoch)
            pkt = self.ack_link.pull()

    def tick(self, ts_ms):
        assert self.ts_ms <= ts_ms
        self.ts_ms = ts_ms
        self.data_link.tick(ts_ms)
        self.ack_link.tick(ts_ms)
        self._send_requests()
        self._receive_blocks()
        self._receive_acks()
        self.scheme.run_loop_callback()

    def done(self):
        return self.next_request >= len(self.requests) and \
            self.data_link.is_empty() and self.ack_link.is_empty()

    def simulate(self, max_dur_ms=None, summary=True):
        ts_ms = 0
        while not self.done():
            if max_dur_ms is not None and ts_ms >= max_dur_ms:
                raise RuntimeError(
                    f"simulation did not finish within {max_dur_ms}ms")
            self.tick(ts_ms)
            ts_ms += 1
        logger.info("simulation finished at %dms", self.ts_ms)
        self.scheme.close()
        self.recorder.close()
        if summary:
            self.summary()
        return self.stats

    def summary(self):
        self.stats.summary(self.scheme.get_hol_block_count())
