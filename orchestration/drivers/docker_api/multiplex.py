"""
Decoder for the engine's multiplexed exec stream.

Exec output comes back with stdout and stderr interleaved in one HTTP body.
Each frame of the stream has the following layout::

    header := [8]byte{STREAM_TYPE, 0, 0, 0, SIZE1, SIZE2, SIZE3, SIZE4}

STREAM_TYPE is 0 for stdin, 1 for stdout and 2 for stderr. SIZE1..SIZE4 are
the payload length as a big-endian uint32. The payload follows the header
directly.
"""

import logging
import struct
from typing import Tuple

from orchestration.exceptions import ProtocolError

logger = logging.getLogger(__name__)

HEADER = struct.Struct(">BxxxI")

STDIN = 0
STDOUT = 1
STDERR = 2


class FrameDemultiplexer:
    """
    Incremental decoder splitting a multiplexed stream into stdout and stderr.

    Chunks may be split anywhere, including inside a header. Only the bytes of
    the frame currently being received are kept pending; completed payloads
    are appended to their channel buffer straight away.

    Usage::

        demux = FrameDemultiplexer()
        for chunk in response.iter_raw():
            demux.feed(chunk)
        stdout, stderr = demux.finish()
    """

    def __init__(self) -> None:
        self._pending = bytearray()
        self._stdout = bytearray()
        self._stderr = bytearray()
        self._finished = False

    @property
    def pending(self) -> int:
        """Number of bytes waiting for the rest of their frame."""
        return len(self._pending)

    @property
    def stdout(self) -> bytes:
        return bytes(self._stdout)

    @property
    def stderr(self) -> bytes:
        return bytes(self._stderr)

    def feed(self, chunk: bytes) -> None:
        """
        Consume the next chunk of the stream.

        Raises:
            ProtocolError: If called after finish() or a frame has an unknown type
        """
        if self._finished:
            raise ProtocolError("Exec stream already finished")
        if not chunk:
            return

        self._pending += chunk
        offset = 0
        while len(self._pending) - offset >= HEADER.size:
            stream_type, length = HEADER.unpack_from(self._pending, offset)
            if stream_type not in (STDIN, STDOUT, STDERR):
                raise ProtocolError(f"Unknown stream type {stream_type} in exec stream")

            end = offset + HEADER.size + length
            if end > len(self._pending):
                break

            payload = self._pending[offset + HEADER.size:end]
            if stream_type == STDOUT:
                self._stdout += payload
            elif stream_type == STDERR:
                self._stderr += payload
            offset = end

        del self._pending[:offset]

    def finish(self) -> Tuple[bytes, bytes]:
        """
        Signal the end of the stream.

        Returns:
            The complete (stdout, stderr) buffers

        Raises:
            ProtocolError: If the stream stopped in the middle of a frame
        """
        if self._pending:
            logger.debug("Exec stream ended with %d dangling bytes", len(self._pending))
            raise ProtocolError(
                f"Exec stream ended with an incomplete frame ({len(self._pending)} bytes pending)"
            )
        self._finished = True
        return self.stdout, self.stderr
