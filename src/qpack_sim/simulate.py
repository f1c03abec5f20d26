import argparse
import logging
import time

from qpack_sim.constant import DEFAULT_TABLE_SIZE_BYTES
from qpack_sim.net_simulator import CompressionSimulator
from qpack_sim.plot import plot_block_log
from qpack_sim.scheme import QPACKScheme
from qpack_sim.workload import generate_requests


def parse_args(argv=None):
    parser = argparse.ArgumentParser("Simulate QPACK header compression")
    parser.add_argument(
        "--requests",
        type=int,
        default=1000,
        help="Number of requests to send.",
    )
    parser.add_argument(
        "--table-size",
        type=int,
        default=DEFAULT_TABLE_SIZE_BYTES,
        help="Dynamic table size in bytes.",
    )
    parser.add_argument(
        "--prop-delay-ms",
        type=int,
        default=25,
        help="One way propagation delay of both links.",
    )
    parser.add_argument(
        "--jitter-ms",
        type=int,
        default=10,
        help="Max extra per packet delay, causes reordering.",
    )
    parser.add_argument(
        "--requests-per-ms",
        type=int,
        default=1,
        help="Header blocks packed into the packet sent each ms.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed.",
    )
    parser.add_argument(
        "--save-dir",
        type=str,
        default="",
        help="A directory to save the block log and plot.",
    )
    parser.add_argument(
        "--no-plot",
        action="store_true",
        help="Do not plot the block log.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging.",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    requests = generate_requests(args.requests, seed=args.seed)
    simulator = CompressionSimulator(
        requests, args.save_dir, QPACKScheme(args.table_size),
        prop_delay_ms=args.prop_delay_ms, jitter_ms=args.jitter_ms,
        requests_per_ms=args.requests_per_ms, seed=args.seed)
    simulator.simulate()
    if simulator.recorder.log_fname and not args.no_plot:
        plot_block_log(simulator.recorder.log_fname, args.save_dir)


if __name__ == "__main__":
    t_start = time.time()
    main()
    print("time used: {:.2f}s".format(time.time() - t_start))
