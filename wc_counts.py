# wc_pipeline/wc_counts.py
import json
import re

from wc_errors import SerializationError

# Maximal runs of ASCII letters/digits; every other byte is a separator.
TOKEN_RE = re.compile(rb'[A-Za-z0-9]+')


def tokenize(data):
    """Yield lowercased tokens from raw chunk bytes (or text)."""
    if isinstance(data, str):
        data = data.encode('utf-8', errors='ignore')
    for match in TOKEN_RE.finditer(data):
        yield match.group().decode('ascii').lower()


class Accumulator:
    """Word -> count mapping with an associative, commutative merge."""

    def __init__(self, counts=None):
        self._counts = {}
        if counts:
            for word, count in counts.items():
                self.add_token(word, count)

    def add_token(self, token, count=1):
        if count < 0:
            raise ValueError(f"Negative count for {token!r}: {count}")
        self._counts[token] = self._counts.get(token, 0) + count
        return self

    def add_tokens(self, tokens):
        for token in tokens:
            self.add_token(token)
        return self

    def merge(self, other):
        """Return a new Accumulator holding the key-wise sum of both."""
        merged = Accumulator()
        merged._counts = dict(self._counts)
        for word, count in other._counts.items():
            merged._counts[word] = merged._counts.get(word, 0) + count
        return merged

    def total(self):
        return sum(self._counts.values())

    def to_dict(self):
        return dict(self._counts)

    def __len__(self):
        return len(self._counts)

    def __getitem__(self, token):
        return self._counts.get(token, 0)

    def __eq__(self, other):
        if isinstance(other, Accumulator):
            return self._counts == other._counts
        return NotImplemented

    def __repr__(self):
        return f"Accumulator({self._counts!r})"


def encode_counts(acc):
    counts = acc.to_dict() if isinstance(acc, Accumulator) else dict(acc)
    return json.dumps(counts, sort_keys=True).encode('utf-8')


def decode_counts(data, source='<partial>'):
    """Parse a serialized CountMap, rejecting anything that is not {str: int >= 0}."""
    try:
        counts = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise SerializationError(f"{source} is not valid JSON: {e}") from e
    if not isinstance(counts, dict):
        raise SerializationError(f"{source} is not a JSON object")
    for word, count in counts.items():
        # bool is an int subclass; reject it explicitly
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise SerializationError(f"{source} has an invalid count for {word!r}: {count!r}")
    return Accumulator(counts)
