class Packet:
    DATA_PKT = "data"
    ACK_PKT = "ack"

    def __init__(self, pkt_id, pkt_type, size_bytes: int, app_data) -> None:
        self.pkt_id = pkt_id
        self.pkt_type = pkt_type
        self.size_bytes = size_bytes
        self.prop_delay_ms = 0
        self.jitter_ms = 0
        self.ts_sent_ms = 0
        self.ts_rcvd_ms = 0
        # data pkt: list of (request_index, FrameFlags, encoded block)
        # ack pkt: Ack
        self.app_data = app_data

    def add_prop_delay_ms(self, delay_ms: int) -> None:
        """Add to the propagation delay."""
        self.prop_delay_ms += delay_ms

    def add_jitter_ms(self, jitter_ms: int) -> None:
        self.jitter_ms += jitter_ms

    def delay_ms(self):
        return self.prop_delay_ms + self.jitter_ms

    def ts_arrival_ms(self):
        return self.ts_sent_ms + self.delay_ms()

    def is_data_pkt(self):
        return self.pkt_type == self.DATA_PKT

    def is_ack_pkt(self):
        return self.pkt_type == self.ACK_PKT
