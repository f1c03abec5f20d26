from qpack_sim.link import ReorderLink
from qpack_sim.packet import Packet


def send(link, pkt_id, ts_ms):
    pkt = Packet(pkt_id, Packet.DATA_PKT, 100, {})
    pkt.ts_sent_ms = ts_ms
    link.push(pkt)


def drain(link, dur_ms):
    arrived = []
    for ts_ms in range(link.ts_ms, dur_ms):
        link.tick(ts_ms)
        pkt = link.pull()
        while pkt is not None:
            assert pkt.ts_arrival_ms() <= ts_ms
            arrived.append(pkt.pkt_id)
            pkt = link.pull()
    return arrived


def test_link_without_jitter_keeps_order():
    link = ReorderLink('datalink', prop_delay_ms=25)
    for i in range(20):
        send(link, i, 0)
    link.tick(24)
    assert link.pull() is None
    assert drain(link, 100) == list(range(20))
    assert link.is_empty()


def test_link_with_jitter_reorders():
    link = ReorderLink('datalink', prop_delay_ms=5, jitter_ms=30, seed=1)
    for i in range(50):
        send(link, i, i)
        link.tick(i)
    arrived = drain(link, 200)
    assert sorted(arrived) == list(range(50))
    assert arrived != list(range(50))


def test_link_reset():
    link = ReorderLink('acklink', prop_delay_ms=5, jitter_ms=10, seed=3)
    send(link, 0, 0)
    link.reset()
    assert link.is_empty()
    assert link.ts_ms == 0
