"""Command-line front end.

    python run.py <sets> <blocks per set> <bytes per block> \
        {write-allocate|no-write-allocate} {write-through|write-back} {lru|fifo} < trace

Reads the trace from stdin (or --trace), prints the seven summary counters and
exits 0. Any configuration problem prints a message on stderr and exits 1.
"""
import argparse
import logging
import sys
from typing import List, Optional

from cachesim.core.cache import CacheModel
from cachesim.core.config import CacheConfig, ConfigError
from cachesim.core.simulator import CacheSimulator
from cachesim.core.trace import TraceError
from cachesim.data.stats_export import Exporter, export_chart_pdf, format_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 1

ARGS_HELP = """positional arguments must be:
 - number of sets in the cache (a positive power-of-2)
 - number of blocks in each set (a positive power-of-2)
 - number of bytes in each block (a positive power-of-2, at least 4)
 - write-allocate or no-write-allocate
 - write-through or write-back
 - lru (least-recently-used) or fifo evictions"""


class _ArgumentParser(argparse.ArgumentParser):
    # every usage error is a configuration failure
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_CONFIG, f"{self.prog}: error: {message}\n{ARGS_HELP}\n")


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(prog='cachesim', description="Trace-driven set-associative cache simulator",
                         epilog=ARGS_HELP, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("num_sets", type=int, help="Number of sets in the cache")
    ap.add_argument("associativity", type=int, help="Number of blocks in each set")
    ap.add_argument("block_size", type=int, help="Number of bytes in each block")
    ap.add_argument("miss_policy", help="write-allocate or no-write-allocate")
    ap.add_argument("write_policy", help="write-through or write-back")
    ap.add_argument("eviction", help="lru or fifo")
    ap.add_argument("--trace", type=str, default=None, help="Trace file (default: stdin)")
    ap.add_argument("--strict", action="store_true", help="Fail on a malformed trace line instead of stopping there")
    ap.add_argument("--csv", type=str, default=None, help="Path to write summary stats CSV")
    ap.add_argument("--json", type=str, default=None, help="Path to write summary stats JSON")
    ap.add_argument("--chart", type=str, default=None, help="Path to write a hit/miss chart PDF")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every eviction on stderr")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    try:
        config = CacheConfig.from_keywords(args.num_sets, args.associativity, args.block_size,
                                           args.miss_policy, args.write_policy, args.eviction)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return EXIT_CONFIG

    sim = CacheSimulator(CacheModel(config))
    try:
        if args.trace:
            with open(args.trace, 'rb') as fh:
                stats = sim.run_trace(fh, strict=args.strict)
        else:
            # raw bytes when available so undecodable input is reported per line
            stats = sim.run_trace(getattr(sys.stdin, 'buffer', sys.stdin), strict=args.strict)
    except TraceError as e:
        print(f"malformed trace: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except OSError as e:
        print(f"cannot read trace: {e}", file=sys.stderr)
        return EXIT_CONFIG

    print(format_report(stats))

    try:
        if args.csv:
            Exporter.export_stats_csv(args.csv, stats)
        if args.json:
            Exporter.export_stats_json(args.json, stats, config=config.describe())
        if args.chart:
            export_chart_pdf(stats, args.chart)
    except OSError as e:
        print(f"cannot write output: {e}", file=sys.stderr)
        return EXIT_CONFIG
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
