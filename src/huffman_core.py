# filename: huffman_core.py

import heapq
import io
import logging
import re
from collections.abc import Mapping

from huffman_errors import DecodeError, EmptyInput, MalformedTable, UnknownSymbol

logger = logging.getLogger(__name__)

# Weight carried by nodes rebuilt from a serialized table
UNWEIGHTED = -1

_SYMBOL_LINE = re.compile(r"[0-9]+")


class HuffmanNode:
    __slots__ = ("symbol", "freq", "left", "right", "key")

    def __init__(self, symbol, freq, left=None, right=None):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right
        # smallest symbol in the subtree, breaks ties between equal weights
        if left is None and right is None:
            self.key = symbol
        else:
            self.key = min(left.key, right.key)

    def is_leaf(self):
        return self.left is None and self.right is None

    def __lt__(self, other):
        return (self.freq, self.key) < (other.freq, other.key)

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(symbol={self.symbol!r}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq})"


def _check_symbol(symbol):
    if isinstance(symbol, bool) or not isinstance(symbol, int) or symbol < 0:
        raise ValueError(f"symbol must be a non-negative integer, got {symbol!r}")


def _nonzero(frequencies):
    # Accept both {symbol: count} and an array indexed by symbol
    if isinstance(frequencies, Mapping):
        items = frequencies.items()
    else:
        items = enumerate(frequencies)
    for symbol, freq in items:
        _check_symbol(symbol)
        if freq < 0:
            raise ValueError(f"negative frequency {freq} for symbol {symbol}")
        if freq:
            yield symbol, freq


def _bit_value(bit):
    # ints 0/1 or the characters "0"/"1"; bools and floats are not bits
    if isinstance(bit, bool):
        return None
    if isinstance(bit, int) and bit in (0, 1):
        return bit
    if isinstance(bit, str) and bit in ("0", "1"):
        return int(bit)
    return None


def parse_table(lines):
    """Yield (symbol, bits) records from the line-oriented table format.

    Each record is two lines: the decimal symbol code, then its bit-string.
    """
    lines = iter(lines)
    for index, symbol_line in enumerate(lines):
        symbol_line = symbol_line.strip()
        try:
            bits = next(lines)
        except StopIteration:
            raise MalformedTable(f"symbol {symbol_line!r} has no bit-string line", index) from None
        if not _SYMBOL_LINE.fullmatch(symbol_line):
            raise MalformedTable(f"invalid symbol code {symbol_line!r}", index)
        yield int(symbol_line), bits.strip()


class HuffmanLogic:
    def build_tree(self, frequencies):
        # Priority queue of leaves, ordered by (weight, smallest symbol)
        priority_queue = [HuffmanNode(symbol, freq) for symbol, freq in _nonzero(frequencies)]
        heapq.heapify(priority_queue)

        # Iteratively merge the two lightest nodes
        while len(priority_queue) > 1:
            left = heapq.heappop(priority_queue)
            right = heapq.heappop(priority_queue)
            merged = HuffmanNode(None, left.freq + right.freq, left, right)
            heapq.heappush(priority_queue, merged)

        return priority_queue[0] if priority_queue else None

    def build_tree_from_table(self, records, max_symbol=None):
        root = None
        seen = set()
        for index, (symbol, bits) in enumerate(records):
            _check_symbol(symbol)
            if max_symbol is not None and symbol > max_symbol:
                raise MalformedTable(f"symbol {symbol} is outside 0-{max_symbol}", index)
            if bits.strip("01"):
                raise MalformedTable(f"bit-string {bits!r} contains characters other than 0/1", index)
            if symbol in seen:
                raise MalformedTable(f"symbol {symbol} listed twice", index)
            seen.add(symbol)

            if not bits:
                if root is not None:
                    raise MalformedTable(f"empty path for symbol {symbol} collides with existing tree", index)
                root = HuffmanNode(symbol, UNWEIGHTED)
                continue

            if root is None:
                root = HuffmanNode(None, UNWEIGHTED)
            elif root.is_leaf():
                raise MalformedTable(f"path {bits!r} passes through a leaf", index)

            node = root
            for bit in bits[:-1]:
                child = node.left if bit == "0" else node.right
                if child is None:
                    child = HuffmanNode(None, UNWEIGHTED)
                    if bit == "0":
                        node.left = child
                    else:
                        node.right = child
                elif child.is_leaf():
                    raise MalformedTable(f"path {bits!r} passes through a leaf", index)
                node = child

            if (node.left if bits[-1] == "0" else node.right) is not None:
                raise MalformedTable(f"path {bits!r} is already taken", index)
            leaf = HuffmanNode(symbol, UNWEIGHTED)
            if bits[-1] == "0":
                node.left = leaf
            else:
                node.right = leaf

        return root

    def iter_records(self, root):
        """Yield (symbol, path) for every leaf, left subtree first."""
        if root is None:
            return
        stack = [(root, "")]
        while stack:
            node, path = stack.pop()
            if node.is_leaf():
                yield node.symbol, path
                continue
            if node.right is not None:
                stack.append((node.right, path + "1"))
            if node.left is not None:
                stack.append((node.left, path + "0"))

    def generate_codes(self, root):
        return dict(self.iter_records(root))

    def decode(self, root, bits):
        """Walk the tree bit by bit, yielding a symbol at every leaf reached.

        A tree made of a single leaf consumes one 0 bit per symbol.
        """
        offset = -1
        node = root
        for offset, bit in enumerate(bits):
            if root is None:
                raise DecodeError("cannot decode bits with an empty code", offset)
            value = _bit_value(bit)
            if value is None:
                raise DecodeError(f"invalid bit {bit!r}", offset)
            child = node.right if value else node.left

            if root.is_leaf():
                if value:
                    raise DecodeError("single-symbol code only accepts 0 bits", offset)
                yield root.symbol
                continue

            if child is None:
                raise DecodeError("bit leads outside the code tree", offset)
            node = child
            if node.is_leaf():
                yield node.symbol
                node = root

        if node is not root:
            raise DecodeError("bit stream ended inside a code", offset + 1)

    def height(self, root):
        return max((len(path) for _, path in self.iter_records(root)), default=0)


class HuffmanCode:
    """A prefix code owning one tree, built from frequencies or a saved table."""

    def __init__(self, root=None, logic=None):
        self.logic = logic or HuffmanLogic()
        self.root = root
        self._codes = None

    @classmethod
    def from_frequencies(cls, frequencies, allow_empty=True):
        logic = HuffmanLogic()
        root = logic.build_tree(frequencies)
        if root is None and not allow_empty:
            raise EmptyInput("frequency table has no nonzero entries")
        code = cls(root, logic)
        logger.debug("built code with %d symbols", len(code))
        return code

    @classmethod
    def from_table(cls, records, max_symbol=None):
        logic = HuffmanLogic()
        return cls(logic.build_tree_from_table(records, max_symbol), logic)

    @classmethod
    def load(cls, source, max_symbol=None):
        """Rebuild a code from saved table text, or an iterable of its lines."""
        if isinstance(source, str):
            source = source.splitlines()
        return cls.from_table(parse_table(source), max_symbol)

    @property
    def is_empty(self):
        return self.root is None

    @property
    def height(self):
        return self.logic.height(self.root)

    def __len__(self):
        return len(self.codes())

    def records(self):
        return list(self.logic.iter_records(self.root))

    def save(self, output):
        for symbol, path in self.logic.iter_records(self.root):
            output.write(f"{symbol}\n{path}\n")

    def dumps(self):
        out = io.StringIO()
        self.save(out)
        return out.getvalue()

    def codes(self):
        """Symbol to bit-string table used when writing bits."""
        if self._codes is None:
            codes = self.logic.generate_codes(self.root)
            if self.root is not None and self.root.is_leaf():
                codes = {self.root.symbol: "0"}
            self._codes = codes
        return dict(self._codes)

    def encode(self, symbols):
        codes = self.codes()
        for symbol in symbols:
            if not codes:
                raise EmptyInput("cannot encode symbols with an empty code")
            try:
                path = codes[symbol]
            except KeyError:
                raise UnknownSymbol(symbol) from None
            for bit in path:
                yield 1 if bit == "1" else 0

    def decode(self, bits):
        return self.logic.decode(self.root, bits)

    def translate(self, bits, sink):
        """Decode bits into sink, a callable or a binary stream; returns the symbol count."""
        write = sink if callable(sink) else lambda symbol: sink.write(bytes([symbol]))
        count = 0
        for symbol in self.decode(bits):
            write(symbol)
            count += 1
        return count

    def weighted_length(self, frequencies):
        codes = self.codes()
        return sum(freq * len(codes[symbol]) for symbol, freq in _nonzero(frequencies))
