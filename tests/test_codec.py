import pytest

from qpack_sim.codec import (HeaderCodec, HeaderDecodeError,
                             IndexingStrategy, NoPathIndexingStrategy)
from qpack_sim.codec.header_codec import OP_LITERAL
from qpack_sim.codec.table import DynamicTable, entry_size

HEADERS = [(":method", "GET"), (":scheme", "https"),
           (":authority", "www.example.com"), (":path", "/a/b.png"),
           ("x-trace", "abc")]


def test_entry_size():
    assert entry_size("x-a", "1") == 36


def test_table_evicts_oldest_first():
    table = DynamicTable(100)
    assert table.insert("x-a", "1", 0) == 0
    assert table.insert("x-b", "2", 0) == 0
    assert table.drop_before == 0
    assert table.insert("x-c", "3", 1) == 1
    assert [e.name for e in table.entries] == ["x-b", "x-c"]
    assert table.drop_before == 1
    assert table.size_bytes == 72


def test_decode_restores_headers():
    client = HeaderCodec()
    server = HeaderCodec()
    payload, evicted = client.encode(HEADERS, 0)
    assert not evicted
    assert server.decode(0, payload) == HEADERS
    assert client.encoded_size.uncompressed == \
        sum(len(n) + len(v) + 4 for n, v in HEADERS)
    assert client.encoded_size.compressed == len(payload)


def test_same_packet_blocks_do_not_insert_twice():
    client = HeaderCodec()
    server = HeaderCodec()
    first, _ = client.encode(HEADERS, 0)
    assert len(client.table) == 3
    second, _ = client.encode(HEADERS, 1)
    # block 0 is not acked, its entries can't be referenced yet
    assert len(client.table) == 3
    assert server.decode(1, second) == HEADERS
    assert server.decode(0, first) == HEADERS

    client.on_flush_boundary()
    client.encode(HEADERS, 2)
    assert len(client.table) == 6


def test_blocks_reference_committed_entries_only():
    client = HeaderCodec()
    server = HeaderCodec()
    first, _ = client.encode(HEADERS, 0)
    client.on_flush_boundary()
    second, _ = client.encode(HEADERS, 1)
    assert len(second) == len(first)

    server.decode(0, first)
    client.set_commit_epoch(0)
    client.on_flush_boundary()
    third, _ = client.encode(HEADERS, 2)
    assert len(third) < len(first)
    assert server.decode(2, third) == HEADERS


def test_repeated_header_in_one_block():
    client = HeaderCodec()
    headers = [("x-dup", "v"), ("x-dup", "v")]
    payload, _ = client.encode(headers, 0)
    assert len(client.table) == 1
    assert HeaderCodec().decode(0, payload) == headers


def test_commit_epoch_never_regresses():
    client = HeaderCodec()
    client.set_commit_epoch(3)
    with pytest.raises(AssertionError):
        client.set_commit_epoch(2)


def test_encode_reports_eviction():
    client = HeaderCodec(100)
    _, evicted = client.encode([("x-a", "1"), ("x-b", "2")], 0)
    assert not evicted
    _, evicted = client.encode([("x-c", "3")], 1)
    assert evicted


def test_shrinking_table_marks_next_block_evicted():
    client = HeaderCodec(200)
    client.encode([("x-a", "1"), ("x-b", "2")], 0)
    client.set_table_size(40)
    _, evicted = client.encode([(":method", "GET")], 1)
    assert evicted
    _, evicted = client.encode([(":method", "GET")], 2)
    assert not evicted


def test_no_path_indexing():
    strategy = NoPathIndexingStrategy()
    assert not strategy.index_header(":path", "/")
    assert strategy.index_header("cookie", "a=b")
    assert IndexingStrategy().index_header(":path", "/")

    client = HeaderCodec()
    client.set_indexing_strategy(strategy)
    client.encode([(":path", "/x")], 0)
    assert len(client.table) == 0


def test_oversized_header_is_not_indexed():
    client = HeaderCodec(64)
    payload, evicted = client.encode([("x-big", "v" * 100)], 0)
    assert not evicted
    assert len(client.table) == 0
    assert payload[3] == OP_LITERAL
    assert HeaderCodec(64).decode(0, payload) == [("x-big", "v" * 100)]


def test_decode_unknown_entry():
    client = HeaderCodec()
    client.encode(HEADERS, 0)
    client.set_commit_epoch(0)
    second, _ = client.encode(HEADERS, 1)
    with pytest.raises(HeaderDecodeError):
        HeaderCodec().decode(1, second)


def test_decode_truncated_block():
    payload, _ = HeaderCodec().encode(HEADERS, 0)
    with pytest.raises(HeaderDecodeError):
        HeaderCodec().decode(0, payload[:-2])


def test_evicting_block_drops_decoder_entries():
    client = HeaderCodec(100)
    server = HeaderCodec(100)
    server.decode(0, client.encode([("x-a", "1"), ("x-b", "2")], 0)[0])
    assert set(server.decoder_entries) == {0, 1}
    payload, evicted = client.encode([("x-c", "3")], 1)
    assert evicted
    server.decode(1, payload)
    assert set(server.decoder_entries) == {1, 2}
