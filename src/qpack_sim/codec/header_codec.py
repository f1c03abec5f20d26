import logging
from typing import Dict, List, Tuple

from qpack_sim.codec.indexing import IndexingStrategy
from qpack_sim.codec.table import DynamicTable
from qpack_sim.constant import DEFAULT_TABLE_SIZE_BYTES, STATIC_TABLE
from qpack_sim.seqn import unwrap_seqn

logger = logging.getLogger(__name__)

Header = Tuple[str, str]

OP_STATIC = 0x00
OP_DYNAMIC = 0x01
OP_LITERAL_INSERT = 0x02
OP_LITERAL = 0x03

STATIC_INDEX = {field: idx for idx, field in enumerate(STATIC_TABLE)}


class HeaderDecodeError(RuntimeError):
    pass


def encode_varint(value: int, buf: bytearray) -> None:
    assert value >= 0
    while value >= 0x80:
        buf.append((value & 0x7f) | 0x80)
        value >>= 7
    buf.append(value)


def encode_string(value: str, buf: bytearray) -> None:
    data = value.encode()
    encode_varint(len(data), buf)
    buf.extend(data)


class BlockReader:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.pos = 0

    def read_byte(self) -> int:
        if self.pos >= len(self.payload):
            raise HeaderDecodeError("truncated header block")
        val = self.payload[self.pos]
        self.pos += 1
        return val

    def read_varint(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self.read_byte()
            value |= (byte & 0x7f) << shift
            if byte < 0x80:
                return value
            shift += 7

    def read_string(self) -> str:
        length = self.read_varint()
        if self.pos + length > len(self.payload):
            raise HeaderDecodeError("truncated string literal")
        data = self.payload[self.pos:self.pos + length]
        self.pos += length
        return data.decode()


class EncodedSize:
    def __init__(self) -> None:
        self.uncompressed = 0
        self.compressed = 0


class HeaderCodec:
    """Incremental header codec with a shared dynamic table.

    The encoder only references dynamic entries the decoder is guaranteed to
    hold whatever order it decodes blocks in: entries from committed (acked)
    blocks and entries inserted by the block itself. A header already
    inserted by an unflushed block of the current packet is sent as a plain
    literal instead of being inserted again. Each block states where its
    inserts start and, when it evicted entries, the absolute index below
    which the decoder drops them.
    """

    def __init__(self, table_size_bytes: int = DEFAULT_TABLE_SIZE_BYTES) -> None:
        # encoder side
        self.table = DynamicTable(table_size_bytes)
        self.strategy = IndexingStrategy()
        self.commit_epoch = -1
        self.packet_epoch = 0
        self.next_seqn = 0
        self.encoding_seqn = -1
        self.drop_pending = False
        self.encoded_size = EncodedSize()

        # decoder side
        self.decoder_entries: Dict[int, Header] = {}

    def set_table_size(self, table_size_bytes: int):
        if self.table.set_capacity(table_size_bytes) > 0:
            self.drop_pending = True

    def set_indexing_strategy(self, strategy: IndexingStrategy):
        self.strategy = strategy

    def set_commit_epoch(self, epoch: int):
        assert epoch >= self.commit_epoch, \
            f"commit epoch regressed from {self.commit_epoch} to {epoch}"
        self.commit_epoch = epoch

    def on_flush_boundary(self):
        # blocks encoded from now on go into a new packet, entries inserted
        # by blocks already sent may be inserted again until acked
        self.packet_epoch = self.next_seqn

    def _usable(self, entry) -> bool:
        return entry.seqn <= self.commit_epoch or entry.seqn == self.encoding_seqn

    def _in_unflushed_packet(self, entry) -> bool:
        return entry.seqn >= self.packet_epoch

    def encode(self, headers: List[Header], seqn: int) -> Tuple[bytes, bool]:
        """Compress one header block.

        Return the payload and whether encoding it evicted dynamic table
        entries.
        """
        ext_seqn = unwrap_seqn(seqn, self.next_seqn)
        assert ext_seqn == self.next_seqn, \
            f"expect seqn {self.next_seqn}, got {ext_seqn}"
        self.next_seqn += 1
        self.encoding_seqn = ext_seqn

        insert_base = self.table.next_abs_idx
        evicted = self.drop_pending
        self.drop_pending = False
        instructions = bytearray()
        uncompressed = 0
        for name, value in headers:
            uncompressed += len(name) + len(value) + 4
            static_idx = STATIC_INDEX.get((name, value))
            if static_idx is not None:
                instructions.append(OP_STATIC)
                encode_varint(static_idx, instructions)
                continue
            entry = self.table.find(name, value, self._usable)
            if entry is not None:
                instructions.append(OP_DYNAMIC)
                encode_varint(entry.abs_idx, instructions)
                continue
            if self.strategy.index_header(name, value) and \
                    self.table.fits(name, value) and \
                    self.table.find(name, value, self._in_unflushed_packet) is None:
                if self.table.insert(name, value, ext_seqn) > 0:
                    evicted = True
                instructions.append(OP_LITERAL_INSERT)
            else:
                instructions.append(OP_LITERAL)
            encode_string(name, instructions)
            encode_string(value, instructions)

        block = bytearray()
        encode_varint(insert_base, block)
        encode_varint(self.table.drop_before if evicted else 0, block)
        encode_varint(len(headers), block)
        block.extend(instructions)

        self.encoded_size.uncompressed = uncompressed
        self.encoded_size.compressed = len(block)
        return bytes(block), evicted

    def decode(self, seqn: int, payload: bytes) -> List[Header]:
        reader = BlockReader(payload)
        next_abs_idx = reader.read_varint()
        drop_before = reader.read_varint()
        n_headers = reader.read_varint()
        headers = []
        for _ in range(n_headers):
            op = reader.read_byte()
            if op == OP_STATIC:
                idx = reader.read_varint()
                if idx >= len(STATIC_TABLE):
                    raise HeaderDecodeError(
                        f"seqn {seqn}: static index {idx} out of range")
                headers.append(STATIC_TABLE[idx])
            elif op == OP_DYNAMIC:
                abs_idx = reader.read_varint()
                header = self.decoder_entries.get(abs_idx)
                if header is None:
                    raise HeaderDecodeError(
                        f"seqn {seqn}: unknown dynamic entry {abs_idx}")
                headers.append(header)
            elif op in (OP_LITERAL_INSERT, OP_LITERAL):
                header = (reader.read_string(), reader.read_string())
                if op == OP_LITERAL_INSERT:
                    self.decoder_entries[next_abs_idx] = header
                    next_abs_idx += 1
                headers.append(header)
            else:
                raise HeaderDecodeError(f"seqn {seqn}: bad opcode {op:#x}")
        if reader.pos != len(payload):
            raise HeaderDecodeError(f"seqn {seqn}: trailing bytes in block")
        if drop_before:
            for abs_idx in [idx for idx in self.decoder_entries if idx < drop_before]:
                del self.decoder_entries[abs_idx]
        logger.debug("decoded seqn=%d, %d headers, decoder table holds %d entries",
                     seqn, len(headers), len(self.decoder_entries))
        return headers
