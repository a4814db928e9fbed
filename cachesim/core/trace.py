"""Memory trace reader.

A trace is a text stream of whitespace-separated records, one per access:

    <op> <hex address> <size>

e.g. ``l 0x1fffff50 4``. `op` is a single character, ``l`` for loads; anything
else is a store. The size field is parsed but not used by the cache.
"""
import logging
import re
from typing import Iterable, Iterator, NamedTuple, Optional, Tuple, Union

from cachesim.core.config import Operation

logger = logging.getLogger(__name__)

HEX_ADDRESS = re.compile(r'^(0[xX])?[0-9a-fA-F]+$')


class TraceError(ValueError):
    """Raised for a trace record that cannot be parsed."""

    def __init__(self, message: str, line_no: Optional[int] = None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


class TraceRecord(NamedTuple):
    operation: Operation
    address: int
    size: int


def parse_line(line: str, line_no: Optional[int] = None) -> Optional[TraceRecord]:
    """Parse one trace line. Blank lines give None."""
    parts = line.split()
    if not parts:
        return None
    if len(parts) != 3:
        raise TraceError(f"expected 3 fields, got {len(parts)}: {line.strip()!r}", line_no)
    code, addr, size = parts
    if len(code) != 1:
        raise TraceError(f"operation must be a single character, got {code!r}", line_no)
    if not HEX_ADDRESS.match(addr):
        raise TraceError(f"bad hex address {addr!r}", line_no)
    address = int(addr, 16)
    if address > 0xFFFFFFFF:
        raise TraceError(f"address {addr!r} does not fit in 32 bits", line_no)
    if not (size.isascii() and size.isdigit()):
        raise TraceError(f"bad access size {size!r}", line_no)
    return TraceRecord(Operation.from_code(code), address, int(size))


def _numbered_lines(stream: Iterable[Union[str, bytes]]) -> Iterator[Tuple[int, str]]:
    # byte lines are decoded one at a time so a bad byte maps to its own line
    it = iter(stream)
    line_no = 0
    while True:
        line_no += 1
        try:
            line = next(it)
            if isinstance(line, bytes):
                line = line.decode('utf-8')
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            raise TraceError(f"cannot decode input: {e.reason}", line_no) from None
        yield line_no, line


def read_trace(stream: Iterable[Union[str, bytes]], strict: bool = False) -> Iterator[TraceRecord]:
    """Yield records from `stream`, a text or binary line iterator.

    Reading stops at the first malformed or undecodable line. With `strict`
    the TraceError propagates; otherwise it is logged and the trace is
    treated as ended.
    """
    lines = _numbered_lines(stream)
    while True:
        try:
            line_no, line = next(lines)
            record = parse_line(line, line_no)
        except StopIteration:
            return
        except TraceError as e:
            if strict:
                raise
            logger.warning("trace truncated: %s", e)
            return
        if record is not None:
            yield record
