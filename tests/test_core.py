import heapq
import io
import os
import random
import sys

import pytest

SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
	sys.path.insert(0, SRC)

from huffman_core import UNWEIGHTED, HuffmanCode, HuffmanLogic, parse_table
from huffman_errors import DecodeError, EmptyInput, MalformedTable, UnknownSymbol


TEXTBOOK = {ord('a'): 5, ord('b'): 9, ord('c'): 12, ord('d'): 13, ord('e'): 16, ord('f'): 45}


def _optimal_cost(frequencies):
	# Cost of any Huffman code is the sum of the weights of its merged nodes
	heap = [f for f in frequencies.values() if f]
	heapq.heapify(heap)
	cost = 0
	while len(heap) > 1:
		merged = heapq.heappop(heap) + heapq.heappop(heap)
		cost += merged
		heapq.heappush(heap, merged)
	return cost


def _random_frequencies(rng):
	symbols = rng.sample(range(256), rng.randint(2, 40))
	return {s: rng.randint(1, 500) for s in symbols}


def test_textbook_codes():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	codes = {chr(s): bits for s, bits in code.codes().items()}
	assert codes == {'f': '0', 'c': '100', 'd': '101', 'a': '1100', 'b': '1101', 'e': '111'}
	assert code.weighted_length(TEXTBOOK) == 224
	assert code.height == 4


def test_textbook_serialization():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	assert code.dumps() == "102\n0\n99\n100\n100\n101\n97\n1100\n98\n1101\n101\n111\n"
	out = io.StringIO()
	code.save(out)
	assert out.getvalue() == code.dumps()


def test_root_weight_is_total_frequency():
	root = HuffmanLogic().build_tree(TEXTBOOK)
	assert root.freq == sum(TEXTBOOK.values())
	assert root.left.freq + root.right.freq == root.freq


def test_ties_broken_by_smallest_symbol():
	code = HuffmanCode.from_frequencies({4: 1, 3: 1, 2: 1, 1: 1})
	assert code.codes() == {1: '00', 2: '01', 3: '10', 4: '11'}

	# a leaf and a merged node of equal weight: the leaf holds symbol 0
	code = HuffmanCode.from_frequencies({0: 2, 1: 1, 2: 1})
	assert code.codes() == {0: '0', 1: '10', 2: '11'}


def test_frequency_array_skips_zero_entries():
	code = HuffmanCode.from_frequencies([0, 3, 0, 1])
	assert code.codes() == {3: '0', 1: '1'}


def test_negative_frequency_rejected():
	with pytest.raises(ValueError):
		HuffmanCode.from_frequencies({1: 2, 2: -1})


def test_empty_frequencies():
	code = HuffmanCode.from_frequencies({0: 0, 1: 0})
	assert code.is_empty
	assert code.records() == []
	assert code.dumps() == ""
	assert list(code.decode([])) == []
	assert list(code.encode([])) == []
	with pytest.raises(DecodeError):
		list(code.decode([0]))
	with pytest.raises(EmptyInput):
		list(code.encode([1]))
	with pytest.raises(EmptyInput):
		HuffmanCode.from_frequencies({}, allow_empty=False)


def test_single_symbol_code():
	code = HuffmanCode.from_frequencies({65: 10})
	assert code.root.is_leaf()
	assert code.records() == [(65, '')]
	assert code.dumps() == "65\n\n"
	assert code.codes() == {65: '0'}
	assert list(code.encode([65, 65, 65])) == [0, 0, 0]
	assert list(code.decode([0, 0, 0])) == [65, 65, 65]
	with pytest.raises(DecodeError):
		list(code.decode([0, 1]))

	loaded = HuffmanCode.load(code.dumps())
	assert loaded.root.is_leaf() and loaded.root.symbol == 65
	assert list(loaded.decode([0, 0])) == [65, 65]


def test_encode_unknown_symbol():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	with pytest.raises(UnknownSymbol) as exc_info:
		list(code.encode([ord('z')]))
	assert exc_info.value.symbol == ord('z')


def test_serialization_idempotent():
	code = HuffmanCode.from_frequencies(_random_frequencies(random.Random(7)))
	assert code.dumps() == code.dumps()
	assert code.records() == code.records()


def test_records_in_path_order():
	code = HuffmanCode.from_frequencies(_random_frequencies(random.Random(11)))
	paths = [path for _, path in code.records()]
	assert paths == sorted(paths)


def test_table_tree_is_unweighted():
	code = HuffmanCode.load("1\n0\n2\n10\n3\n11\n")
	assert code.root.freq == UNWEIGHTED
	assert code.root.left.symbol == 1
	assert code.root.right.right.symbol == 3
	assert code.codes() == {1: '0', 2: '10', 3: '11'}


def test_table_order_independent():
	records = HuffmanCode.from_frequencies(TEXTBOOK).records()
	shuffled = list(records)
	random.Random(3).shuffle(shuffled)
	assert HuffmanCode.from_table(shuffled).records() == records


def test_load_accepts_file_lines():
	table = io.StringIO("102\r\n0\r\n99\r\n1\r\n")
	code = HuffmanCode.load(table)
	assert code.codes() == {102: '0', 99: '1'}


@pytest.mark.parametrize("records", [
	[(1, '0'), (2, '0')],
	[(1, '0'), (2, '01')],
	[(1, '01'), (2, '0')],
	[(1, '0'), (2, '')],
	[(1, ''), (2, '1')],
	[(1, ''), (2, '')],
	[(1, '0'), (1, '1')],
	[(1, '0'), (2, '12')],
])
def test_malformed_records(records):
	with pytest.raises(MalformedTable):
		HuffmanCode.from_table(records)


@pytest.mark.parametrize("text", [
	"65\n0a\n",
	"65\n",
	"abc\n0\n",
	"-1\n0\n",
	"65\n0 1\n",
])
def test_malformed_table_text(text):
	with pytest.raises(MalformedTable):
		HuffmanCode.load(text)


def test_malformed_table_reports_record():
	with pytest.raises(MalformedTable) as exc_info:
		list(parse_table(["1", "0", "x", "1"]))
	assert exc_info.value.record == 1


def test_decode_string_bits():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	assert bytes(code.decode("0100")) == b"fc"


def test_decode_truncated_stream():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	with pytest.raises(DecodeError) as exc_info:
		list(code.decode([0, 1, 1, 0]))
	assert exc_info.value.offset == 4


def test_decode_yields_before_failure():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	decoded = []
	with pytest.raises(DecodeError):
		for symbol in code.decode([0, 0, 1]):
			decoded.append(symbol)
	assert decoded == [ord('f'), ord('f')]


def test_decode_missing_child():
	code = HuffmanCode.from_table([(1, '00'), (2, '01')])
	assert list(code.decode([0, 1])) == [2]
	with pytest.raises(DecodeError):
		list(code.decode([1]))


def test_decode_invalid_bit():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	with pytest.raises(DecodeError):
		list(code.decode([0, 2]))


@pytest.mark.parametrize("bit", [True, False, 0.0, 1.0, "01", None])
def test_decode_rejects_non_bits(bit):
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	with pytest.raises(DecodeError):
		list(code.decode([bit]))


def test_load_with_symbol_bound():
	assert HuffmanCode.load("255\n0\n0\n1\n", max_symbol=255).codes() == {255: "0", 0: "1"}
	with pytest.raises(MalformedTable) as exc_info:
		HuffmanCode.load("1\n0\n300\n1\n", max_symbol=255)
	assert exc_info.value.record == 1


def test_translate_sinks():
	code = HuffmanCode.from_frequencies(TEXTBOOK)
	bits = list(code.encode(b"face"))

	out = io.BytesIO()
	assert code.translate(bits, out) == 4
	assert out.getvalue() == b"face"

	collected = []
	code.translate(bits, collected.append)
	assert bytes(collected) == b"face"


def test_random_tables_roundtrip():
	rng = random.Random(1234)
	for _ in range(50):
		frequencies = _random_frequencies(rng)
		built = HuffmanCode.from_frequencies(frequencies)
		loaded = HuffmanCode.load(built.dumps())

		message = rng.choices(list(frequencies), k=200)
		assert list(loaded.decode(built.encode(message))) == message
		assert loaded.codes() == built.codes()


def test_random_tables_optimal_and_prefix_free():
	rng = random.Random(99)
	for _ in range(50):
		frequencies = _random_frequencies(rng)
		code = HuffmanCode.from_frequencies(frequencies)
		assert code.weighted_length(frequencies) == _optimal_cost(frequencies)

		paths = list(code.codes().values())
		for a in paths:
			for b in paths:
				if a != b:
					assert not b.startswith(a)
