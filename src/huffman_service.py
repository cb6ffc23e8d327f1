
# // filename: huffman_service.py

import logging
import os
import tempfile
from collections import Counter
from pathlib import Path

from bit_io import BitInputStream, BitOutputStream
from huffman_core import HuffmanCode, HuffmanLogic

logger = logging.getLogger(__name__)

# Largest symbol a byte-oriented table may hold
MAX_BYTE = 255

CODE_SUFFIX = os.environ.get("HUFFMAN_CODE_SUFFIX", ".code")
SHORT_SUFFIX = os.environ.get("HUFFMAN_SHORT_SUFFIX", ".short")


class HuffmanService:
    def __init__(self):
        self.logic = HuffmanLogic()

    def frequencies(self, data):
        return Counter(data)

    def compress(self, data):
        """Return (table text, packed payload) for data."""
        if not data:
            return "", b""
        code = HuffmanCode(self.logic.build_tree(self.frequencies(data)), self.logic)

        with BitOutputStream() as out:
            out.write_bits(code.encode(data))
        payload = out.getvalue()

        logger.debug(
            "compressed %d bytes into %d payload bytes (%d symbols, %d bits)",
            len(data), len(payload), len(code), out.bits_written,
        )
        return code.dumps(), payload

    def decompress(self, table, payload):
        if not table and not payload:
            return b""
        code = HuffmanCode.load(table, max_symbol=MAX_BYTE)
        out = bytearray()
        code.translate(BitInputStream(payload), out.append)
        return bytes(out)

    def compress_file(self, path, code_path=None, short_path=None):
        path = Path(path)
        code_path = Path(code_path) if code_path else path.with_suffix(CODE_SUFFIX)
        short_path = Path(short_path) if short_path else path.with_suffix(SHORT_SUFFIX)
        targets = {p.resolve() for p in (code_path, short_path)}
        if path.resolve() in targets or len(targets) < 2:
            raise ValueError(f"{path}: input, table and payload paths must all differ")

        data = path.read_bytes()
        table, payload = self.compress(data)
        code_path.write_text(table, encoding="ascii")
        short_path.write_bytes(payload)

        ratio = len(payload) / len(data) if data else 0.0
        logger.info("%s: %d -> %d bytes (ratio %.3f)", path, len(data), len(payload), ratio)
        return code_path, short_path

    def decompress_file(self, code_path, short_path, output_path):
        with open(code_path, "r", encoding="ascii") as f:
            code = HuffmanCode.load(f, max_symbol=MAX_BYTE)
        payload = Path(short_path).read_bytes()

        # Decode next to the target and move it into place only once complete
        output_path = Path(output_path)
        fd, partial = tempfile.mkstemp(dir=output_path.parent, prefix=f".{output_path.name}.")
        try:
            with os.fdopen(fd, "wb") as out:
                count = code.translate(BitInputStream(payload), out)
            os.replace(partial, output_path)
        except BaseException:
            os.unlink(partial)
            raise
        logger.info("%s: restored %d bytes into %s", short_path, count, output_path)
        return count
