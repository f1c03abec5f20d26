import numpy as np


class ReorderLink:
    """A lossless link whose per-packet delay varies.

    Every packet gets the propagation delay plus a uniform jitter in
    [0, jitter_ms], so a packet sent later can arrive earlier.
    """

    def __init__(self, id, prop_delay_ms=25, jitter_ms=0, seed=None) -> None:
        self.id = id
        self.prop_delay_ms = prop_delay_ms
        self.jitter_ms = jitter_ms
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.ts_ms = 0
        self.in_flight_pkts = []

    def push(self, pkt) -> None:
        """Push a packet onto the link"""
        pkt.add_prop_delay_ms(self.prop_delay_ms)
        if self.jitter_ms > 0:
            pkt.add_jitter_ms(int(self.rng.integers(0, self.jitter_ms + 1)))
        self.in_flight_pkts.append(pkt)

    def pull(self):
        """Pull the earliest arrived packet from the link"""
        earliest_idx = None
        for idx, pkt in enumerate(self.in_flight_pkts):
            if pkt.ts_arrival_ms() > self.ts_ms:
                continue
            if earliest_idx is None or pkt.ts_arrival_ms() < \
                    self.in_flight_pkts[earliest_idx].ts_arrival_ms():
                earliest_idx = idx
        if earliest_idx is None:
            return None
        return self.in_flight_pkts.pop(earliest_idx)

    def is_empty(self):
        return not self.in_flight_pkts

    def tick(self, ts_ms) -> None:
        assert ts_ms >= self.ts_ms
        self.ts_ms = ts_ms

    def reset(self) -> None:
        self.rng = np.random.default_rng(self.seed)
        self.ts_ms = 0
        self.in_flight_pkts = []
