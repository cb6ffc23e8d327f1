# filename: bit_io.py

import io

from huffman_errors import DecodeError


class BitOutputStream:
    """Packs bits MSB-first into bytes.

    Closing pads the last byte with zeros and appends one trailer byte
    holding the number of padding bits (0-7).
    """

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else io.BytesIO()
        self.bits_written = 0
        self._acc = 0
        self._acc_bits = 0
        self.closed = False

    def write_bit(self, bit):
        if self.closed:
            raise ValueError("write to closed BitOutputStream")
        self._acc = (self._acc << 1) | (1 if bit else 0)
        self._acc_bits += 1
        self.bits_written += 1
        if self._acc_bits == 8:
            self.stream.write(bytes([self._acc]))
            self._acc = 0
            self._acc_bits = 0

    def write_bits(self, bits):
        for bit in bits:
            self.write_bit(bit)

    def close(self):
        if self.closed:
            return
        padding = 0
        if self._acc_bits:
            padding = 8 - self._acc_bits
            self.stream.write(bytes([self._acc << padding]))
        self.stream.write(bytes([padding]))
        self.closed = True

    def getvalue(self):
        return self.stream.getvalue()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class BitInputStream:
    """Reads back bits written by BitOutputStream, one at a time."""

    def __init__(self, data):
        data = bytes(data)
        if not data:
            self._payload = b""
            self._total = 0
        else:
            padding = data[-1]
            self._payload = data[:-1]
            if padding > 7 or (padding and not self._payload):
                raise DecodeError(f"corrupt bit stream trailer {padding}")
            self._total = len(self._payload) * 8 - padding
        self._position = 0

    def __len__(self):
        return self._total

    def has_next_bit(self):
        return self._position < self._total

    def next_bit(self):
        if not self.has_next_bit():
            raise EOFError("no more bits in stream")
        byte = self._payload[self._position >> 3]
        bit = (byte >> (7 - (self._position & 7))) & 1
        self._position += 1
        return bit

    def __iter__(self):
        while self.has_next_bit():
            yield self.next_bit()
