"""SHA-1 digest (FIPS 180-1) in plain Python.

This module provides a small, readable implementation of the SHA-1 compression
function together with the two ways of feeding it: an in-memory path that pads
the whole message at once, and a streaming path that reads whole 64-byte blocks
straight from a seekable file and only pads the final remainder.

SHA-1 is broken for collision resistance. This is the classical algorithm, not
a hardened replacement for it.
"""
import logging
import os

logger = logging.getLogger(__name__)


class SourceTruncatedError(OSError):
    """The byte source ended before the announced length was read."""


def to_bytes(data):
    """Return data as bytes. Text is UTF-8 encoded, anything else must expose a byte view."""
    if isinstance(data, str):
        return data.encode("utf-8")
    return memoryview(data).tobytes()


class SHA1:

    BLOCK_SIZE = 64

    # Initial hash value h0..h4
    IV = (0x67452301, 0xefcdab89, 0x98badcfe, 0x10325476, 0xc3d2e1f0)

    # One constant per 20-step quadrant
    K_table = [0x5a827999, 0x6ed9eba1, 0x8f1bbcdc, 0xca62c1d6]

    def __init__(self):
        """Initialize to the SHA-1 initial vector (IV)."""
        self.h0, self.h1, self.h2, self.h3, self.h4 = SHA1.initial_state()

    @staticmethod
    def initial_state():
        """Return the five starting register values h0..h4."""
        return SHA1.IV

    @property
    def state(self):
        """Current registers as a read-only (h0, h1, h2, h3, h4) tuple."""
        return self.h0, self.h1, self.h2, self.h3, self.h4

    def _set_state(self, value):
        self.h0, self.h1, self.h2, self.h3, self.h4 = value

    def __eq__(self, other):
        if not isinstance(other, SHA1):
            return NotImplemented
        return self.state == other.state

    def __repr__(self):
        return f"SHA1({self.to_lhex()})"

    def __str__(self):
        return self.to_lhex()

    def __int__(self):
        return int.from_bytes(self.digest(), 'big')

    @staticmethod
    def K(t):
        """Return the constant for step index t (0 <= t < 80)."""
        return SHA1.K_table[t // 20]

    @staticmethod
    def F(b, c, d, t):
        """SHA-1 non-linear boolean function selected by step index t.

        Quadrant 0 (t < 20): (b & c) | (~b & d)      choose
        Quadrant 1 (t < 40): b ^ c ^ d               parity
        Quadrant 2 (t < 60): (b & c) | (b & d) | (c & d)   majority
        Quadrant 3 (t < 80): b ^ c ^ d               parity
        """
        quadrant = t // 20
        if quadrant == 0:
            return (b & c) | (~b & d)
        elif quadrant == 1:
            return b ^ c ^ d
        elif quadrant == 2:
            return (b & c) | (b & d) | (c & d)
        elif quadrant == 3:
            return b ^ c ^ d
        else:
            raise AssertionError(f"Invalid step index {t}")

    @staticmethod
    def ROTL(x, n):
        """Rotate the 32-bit word x left by n bits."""
        x = x & 0xffffffff
        return ((x << n) | (x >> (32 - n))) & 0xffffffff

    @staticmethod
    def schedule(block):
        """Expand a 64-byte block into the 80-word message schedule.

        Words 0..15 are the block read as big-endian 32-bit integers; the rest
        are w[t] = ROTL1(w[t-3] ^ w[t-8] ^ w[t-14] ^ w[t-16]).
        """
        assert len(block) == SHA1.BLOCK_SIZE
        w = [int.from_bytes(block[i*4:i*4+4], 'big') for i in range(16)]
        for t in range(16, 80):
            w.append(SHA1.ROTL(w[t-3] ^ w[t-8] ^ w[t-14] ^ w[t-16], 1))
        assert len(w) == 80
        return w

    @staticmethod
    def sha1_iteration(a, b, c, d, e, w, t):
        """Perform one SHA-1 step (t) on working variables (a,b,c,d,e) with word w."""
        temp = (SHA1.ROTL(a, 5) + SHA1.F(b, c, d, t) + e + SHA1.K(t) + w) & 0xffffffff
        return temp, a, SHA1.ROTL(b, 30), c, d

    @staticmethod
    def compress(state, block):
        """Return the state after absorbing one 64-byte block.

        Pure function of (state, block); the input tuple is not modified.
        """
        w = SHA1.schedule(block)
        a, b, c, d, e = state

        for t in range(80):
            a, b, c, d, e = SHA1.sha1_iteration(a, b, c, d, e, w[t], t)

        return tuple((h + x) & 0xffffffff for h, x in zip(state, (a, b, c, d, e)))

    @staticmethod
    def sha1_padded(input_bytes, message_length=None):
        """Return input_bytes padded to a multiple of 64 bytes per SHA-1.

        Padding: 0x80 byte, then 0x00 bytes up to 56 mod 64, then the 64-bit
        big-endian length (in bits) of the whole message. message_length is
        the byte length of that message and defaults to len(input_bytes); the
        streaming path passes only the final remainder as input_bytes.
        """
        if message_length is None:
            message_length = len(input_bytes)
        num_bits = (message_length * 8) & 0xffffffffffffffff

        padded = bytes(input_bytes) + b"\x80"
        padded += b"\x00" * ((56 - len(padded)) % 64)
        padded += num_bits.to_bytes(8, 'big')

        assert len(padded) % SHA1.BLOCK_SIZE == 0
        return padded

    def sha1_chunk(self, input_bytes):
        """Process one 64-byte chunk and update internal state."""
        self._set_state(SHA1.compress(self.state, input_bytes))

    def update_blocks(self, input_bytes):
        """Fold an already padded message through the compressor, block by block."""
        assert len(input_bytes) % SHA1.BLOCK_SIZE == 0
        for i in range(0, len(input_bytes), SHA1.BLOCK_SIZE):
            self.sha1_chunk(input_bytes[i:i+SHA1.BLOCK_SIZE])
        return self

    def digest(self):
        """Return the 20-byte digest (h0..h4, big-endian)."""
        return b"".join(h.to_bytes(4, 'big') for h in self.state)

    def to_hex(self, upper=False):
        """Render the state as 40 hexadecimal digits, h0 first."""
        fmt = "{:08X}" if upper else "{:08x}"
        return "".join(fmt.format(h) for h in self.state)

    def to_lhex(self):
        return self.to_hex()

    def to_uhex(self):
        return self.to_hex(upper=True)


def sha1(data):
    """Hash an in-memory message (text or any bytes-like object)."""
    message = to_bytes(data)
    return SHA1().update_blocks(SHA1.sha1_padded(message))


def _read_exact(source, size):
    """Read exactly size bytes from source or raise SourceTruncatedError."""
    buf = bytearray()
    while len(buf) < size:
        chunk = source.read(size - len(buf))
        if not chunk:
            raise SourceTruncatedError(
                f"Expected {size} bytes from source, got {len(buf)}")
        buf += chunk
    return bytes(buf)


def sha1_stream(source, total_length=None):
    """Hash the first total_length bytes of a seekable binary source.

    Only one 64-byte block is held in memory at a time, plus the padded tail.
    The remainder after the last whole block is read first, then the source is
    rewound and the whole blocks are compressed in order. The call owns the
    read position of source for its duration and does not restore it; other
    readers must not share the handle while hashing.

    If total_length is omitted it is taken from the end of the source.
    I/O failures propagate; a short source raises SourceTruncatedError.
    """
    if total_length is None:
        total_length = source.seek(0, os.SEEK_END)

    whole_blocks, left_over = divmod(total_length, SHA1.BLOCK_SIZE)
    logger.debug("Hashing %d bytes: %d whole blocks, %d byte tail",
                 total_length, whole_blocks, left_over)

    source.seek(whole_blocks * SHA1.BLOCK_SIZE)
    last_blocks = SHA1.sha1_padded(_read_exact(source, left_over), total_length)

    source.seek(0)
    h = SHA1()
    for _ in range(whole_blocks):
        h.sha1_chunk(_read_exact(source, SHA1.BLOCK_SIZE))

    return h.update_blocks(last_blocks)


def sha1_file(path):
    """Hash a file on disk without loading it into memory."""
    with open(path, "rb") as f:
        size = os.fstat(f.fileno()).st_size
        logger.debug("Hashing file %s (%d bytes)", path, size)
        return sha1_stream(f, size)
