import csv
import os

import numpy as np


class SimStats:
    """Counters accumulated over one simulated connection."""

    def __init__(self) -> None:
        self.uncompressed = 0
        self.compressed = 0
        self.max_queue_buffer_bytes = 0
        self.requests = 0
        self.packets = 0
        self.acks = 0
        self.hol_delays_ms = []
        self.ooo_allowed = 0

    def compression_ratio(self) -> float:
        if self.uncompressed == 0:
            return 0.0
        return self.compressed / self.uncompressed

    def summary(self, hol_block_count: int = 0):
        print(f"requests: {self.requests}, packets: {self.packets}, acks: {self.acks}")
        print(f"uncompressed: {self.uncompressed}B, compressed: {self.compressed}B, "
              f"ratio: {self.compression_ratio():.3f}")
        print(f"out-of-order safe blocks: {self.ooo_allowed}/{self.requests}")
        print(f"hol blocks: {hol_block_count}, "
              f"max queue buffer: {self.max_queue_buffer_bytes}B")
        delays = [delay for delay in self.hol_delays_ms if delay > 0]
        if delays:
            print(f"hol delay: avg {np.mean(delays):.2f}ms, "
                  f"p95 {np.percentile(delays, 95):.2f}ms, "
                  f"max {np.max(delays)}ms")


class BlockRecorder:
    """Write one csv row per header block event."""

    def __init__(self, log_dir) -> None:
        self.log_dir = log_dir
        if self.log_dir:
            os.makedirs(self.log_dir, exist_ok=True)
            self.log_fname = os.path.join(log_dir, "block_log.csv")
            self.log_fh = open(self.log_fname, 'w', 1)
            self.csv_writer = csv.writer(self.log_fh, lineterminator="\n")
            self.csv_writer.writerow(
                ["timestamp_ms", "event", "request_index", "seqn",
                 "size_bytes", "allow_ooo", "queued_bytes", "hol_delay_ms",
                 "commit_epoch"])
        else:
            self.log_fname = None
            self.log_fh = None
            self.csv_writer = None

    def __del__(self):
        self.close()

    def close(self):
        if self.log_fh:
            self.log_fh.close()
            self.log_fh = None
            self.csv_writer = None

    def on_block_sent(self, ts_ms, request_index, seqn, size_bytes, allow_ooo):
        if self.csv_writer:
            self.csv_writer.writerow(
                [ts_ms, "sent", request_index, seqn, size_bytes,
                 int(allow_ooo), "", "", ""])

    def on_block_rcvd(self, ts_ms, request_index, seqn, size_bytes, allow_ooo,
                      queued_bytes):
        if self.csv_writer:
            self.csv_writer.writerow(
                [ts_ms, "arrived", request_index, seqn, size_bytes,
                 int(allow_ooo), queued_bytes, "", ""])

    def on_block_decoded(self, ts_ms, request_index, seqn, hol_delay_ms):
        if self.csv_writer:
            self.csv_writer.writerow(
                [ts_ms, "decoded", request_index, seqn, "", "", "",
                 hol_delay_ms, ""])

    def on_ack_rcvd(self, ts_ms, seqn, commit_epoch):
        if self.csv_writer:
            self.csv_writer.writerow(
                [ts_ms, "acked", "", seqn, "", "", "", "", commit_epoch])
