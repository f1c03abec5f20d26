class FrameFlags:
    """Per-block flags that travel next to the encoded header block."""

    def __init__(self, allow_ooo: bool = True) -> None:
        # decoder may process the block before earlier blocks
        self.allow_ooo = allow_ooo

    @classmethod
    def from_eviction(cls, evicted: bool):
        return cls(allow_ooo=not evicted)

    def __eq__(self, other):
        return isinstance(other, FrameFlags) and \
            self.allow_ooo == other.allow_ooo

    def __repr__(self):
        return f"FrameFlags(allow_ooo={self.allow_ooo})"
