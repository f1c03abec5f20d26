from typing import Callable, List, Optional

from qpack_sim.codec import Header


class DecodeCallback:
    """Follow one request's header block through the receiver."""

    def __init__(self, request_index: int, ts_enqueued_ms: int = 0,
                 on_done: Optional[Callable[["DecodeCallback"], None]] = None) -> None:
        self.request_index = request_index
        self.seqn = -1
        self.ts_enqueued_ms = ts_enqueued_ms
        self.ts_decoded_ms = -1
        self.headers: Optional[List[Header]] = None
        self.hol_blocked = False
        self.on_done = on_done

    @property
    def decoded(self) -> bool:
        return self.headers is not None

    def on_headers_complete(self, headers: List[Header]):
        assert not self.decoded, \
            f"request {self.request_index} decoded twice"
        self.headers = headers
        if self.on_done:
            self.on_done(self)

    def maybe_mark_hol_delay(self):
        """Called right after the block is handed to the queue."""
        if not self.decoded:
            self.hol_blocked = True

    def hol_delay_ms(self) -> int:
        if not self.hol_blocked or self.ts_decoded_ms < 0:
            return 0
        return self.ts_decoded_ms - self.ts_enqueued_ms
