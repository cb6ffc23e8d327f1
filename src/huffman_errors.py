# filename: huffman_errors.py


class HuffmanError(Exception):
    """Base class for every error raised by the Huffman code."""


class MalformedTable(HuffmanError, ValueError):
    def __init__(self, message, record=None):
        if record is not None:
            message = f"record {record}: {message}"
        super().__init__(message)
        self.record = record


class DecodeError(HuffmanError, ValueError):
    def __init__(self, message, offset=None):
        if offset is not None:
            message = f"bit {offset}: {message}"
        super().__init__(message)
        self.offset = offset


class EmptyInput(HuffmanError, ValueError):
    pass


class UnknownSymbol(HuffmanError, KeyError):
    def __init__(self, symbol):
        super().__init__(symbol)
        self.symbol = symbol

    def __str__(self):
        return f"symbol {self.symbol!r} has no code"
