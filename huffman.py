import heapq
from collections import Counter
from typing import Dict, Hashable, Iterable, List, NamedTuple

Symbol = Hashable # hashable and totally ordered: one character of a str, or one int of a bytes object

PLACEHOLDER = object() # symbol of the synthetic sibling in a one-symbol tree


class HuffmanError(ValueError):
    """Base class for coder failures caused by the caller's input."""


class EmptyInputError(HuffmanError):
    """No symbols to build a tree from."""


class TruncatedStreamError(HuffmanError):
    """The bits ran out in the middle of a code."""


class CorruptStreamError(HuffmanError):
    """The bits cannot have been produced by the given code table."""


class HuffmanNode: # common part of leaves and internal nodes
    def __init__(self, frequency, rank):
        self.frequency = frequency
        self.rank = rank # secondary heap key, unique per tree

    def __lt__(self, other):
        return (self.frequency, self.rank) < (other.frequency, other.rank)

    def is_leaf(self):
        return False


class HuffmanLeaf(HuffmanNode):
    def __init__(self, symbol, frequency, rank=0):
        super().__init__(frequency, rank)
        self.symbol = symbol

    def is_leaf(self):
        return True

    def is_placeholder(self):
        return self.symbol is PLACEHOLDER

    def __repr__(self):
        return f"HuffmanLeaf({self.symbol!r}, {self.frequency})"


class HuffmanInternal(HuffmanNode):
    def __init__(self, left, right, rank=0):
        assert left is not None and right is not None, "internal node needs two children"
        super().__init__(left.frequency + right.frequency, rank)
        self.left = left
        self.right = right

    def __repr__(self):
        return f"HuffmanInternal({self.left!r}, {self.right!r})"


class EncodedStream(NamedTuple):
    bits: str # '0'/'1' characters
    table: Dict[Symbol, str] # the decoder cannot work without it


def count_frequencies(symbols: Iterable[Symbol]) -> Dict[Symbol, int]:
    return dict(Counter(symbols))


def build_huffman_tree(frequency_table: Dict[Symbol, int]) -> HuffmanNode:
    """
    Greedy Huffman merge over a min-heap keyed by (frequency, rank).

    Leaves are ranked by ascending symbol value and internal nodes after all
    leaves in creation order, so equal frequencies always resolve the same way.
    The first node popped in each step becomes the left child.
    """
    if not frequency_table:
        raise EmptyInputError("cannot build a Huffman tree from zero symbols")

    symbols = sorted(frequency_table)
    priority_queue = []
    for rank, symbol in enumerate(symbols):
        frequency = frequency_table[symbol]
        if frequency <= 0:
            raise ValueError(f"frequency of {symbol!r} must be positive, got {frequency}")
        priority_queue.append(HuffmanLeaf(symbol, frequency, rank))
    heapq.heapify(priority_queue)

    # One symbol: pair it with a placeholder so it still gets a 1-bit code
    if len(priority_queue) == 1:
        leaf = priority_queue[0]
        return HuffmanInternal(leaf, HuffmanLeaf(PLACEHOLDER, 0, len(symbols)), len(symbols) + 1)

    next_rank = len(symbols)
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        heapq.heappush(priority_queue, HuffmanInternal(left, right, next_rank))
        next_rank += 1

    return priority_queue[0] # root of the tree


def generate_huffman_codes(root: HuffmanNode) -> Dict[Symbol, str]:
    codes: Dict[Symbol, str] = {}

    if root.is_leaf(): # bare leaf, not produced by build_huffman_tree
        if not root.is_placeholder():
            codes[root.symbol] = "0"
        return codes

    # iterative DFS, left subtree popped first
    stack = [(root, "")]
    while stack:
        node, current_code = stack.pop()
        if node.is_leaf():
            if not node.is_placeholder():
                codes[node.symbol] = current_code
            continue
        stack.append((node.right, current_code + "1"))
        stack.append((node.left, current_code + "0"))

    return codes # symbol -> code


def encode_with_codes(symbols: Iterable[Symbol], code_map: Dict[Symbol, str]) -> str:
    try:
        return "".join(code_map[symbol] for symbol in symbols)
    except KeyError as e:
        raise KeyError(f"symbol {e.args[0]!r} has no code in the table") from None


def huffman_encode(symbols: Iterable[Symbol]) -> EncodedStream:
    symbols = list(symbols)
    frequency_table = count_frequencies(symbols)
    if not frequency_table:
        raise EmptyInputError("cannot encode an empty message")

    root = build_huffman_tree(frequency_table)
    code_map = generate_huffman_codes(root)
    return EncodedStream(encode_with_codes(symbols, code_map), code_map)


def _bit_char(bit) -> str:
    if bit in ("0", 0):
        return "0"
    if bit in ("1", 1):
        return "1"
    raise CorruptStreamError(f"not a bit: {bit!r}")


def huffman_decode(bits: Iterable, code_map: Dict[Symbol, str]) -> List[Symbol]:
    """
    Decode bits with an exact-match lookup of the accumulated code.

    Raises CorruptStreamError once the accumulator is longer than every code
    in the table, and TruncatedStreamError if the bits end mid-code.
    """
    if not is_prefix_code(code_map):
        raise ValueError("code table is not a prefix code (empty, duplicate or prefix codes)")
    reverse_map = {code: symbol for symbol, code in code_map.items()}
    longest = max((len(code) for code in reverse_map), default=0)

    decoded = []
    current_code = ""
    for bit in bits:
        current_code += _bit_char(bit)
        symbol = reverse_map.get(current_code, PLACEHOLDER)
        if symbol is not PLACEHOLDER:
            decoded.append(symbol)
            current_code = ""
        elif len(current_code) > longest:
            raise CorruptStreamError(
                f"no code matches {current_code!r} (longest code is {longest} bits)"
            )

    if current_code:
        raise TruncatedStreamError(f"stream ends inside a code: {current_code!r}")
    return decoded


def decode_with_tree(bits: Iterable, root: HuffmanNode) -> List[Symbol]:
    if root.is_leaf():
        # bare leaf root: its code is "0"
        root = HuffmanInternal(root, HuffmanLeaf(PLACEHOLDER, 0))

    decoded = []
    node = root
    for bit in bits:
        node = node.left if _bit_char(bit) == "0" else node.right
        if node.is_leaf():
            if node.is_placeholder():
                raise CorruptStreamError("bits lead to the placeholder leaf")
            decoded.append(node.symbol)
            node = root # back to the root for the next symbol

    if node is not root:
        raise TruncatedStreamError("stream ends inside a code")
    return decoded


def decode_text(bits: Iterable, code_map: Dict[str, str]) -> str:
    return "".join(huffman_decode(bits, code_map))


def decode_bytes(bits: Iterable, code_map: Dict[int, str]) -> bytes:
    return bytes(huffman_decode(bits, code_map))


def is_prefix_code(code_map: Dict[Symbol, str]) -> bool:
    codes = sorted(code_map.values())
    if any(not code for code in codes) or len(set(codes)) != len(codes):
        return False
    # after sorting, a prefix sits right before some code that extends it
    return not any(b.startswith(a) for a, b in zip(codes, codes[1:]))


def average_code_length(code_map: Dict[Symbol, str], frequency_table: Dict[Symbol, int]) -> float:
    total = sum(frequency_table.values())
    if total == 0:
        return 0.0
    return sum(len(code_map[s]) * f for s, f in frequency_table.items()) / total
