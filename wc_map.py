# wc_pipeline/wc_map.py
import argparse
import json
import sys

from wc_address import parse_address
from wc_counts import Accumulator, encode_counts, tokenize
from wc_errors import WordCountError
from wc_store import make_blob_store


def count_words(data):
    """Count lowercased alphanumeric tokens in one chunk."""
    return Accumulator().add_tokens(tokenize(data))


def map_chunk(store, chunk, out):
    """Count the words of the chunk at `chunk` and write the counts to `out`.

    Both addresses are parsed before any store access. Returns `out`.
    """
    chunk_address = parse_address(chunk)
    out_address = parse_address(out)

    data = store.get(chunk_address)
    counts = count_words(data)
    store.put(out_address, encode_counts(counts))
    print(f"[+] Mapped {chunk}: {counts.total()} tokens, {len(counts)} unique -> {out}", file=sys.stderr)
    return out


def main():
    parser = argparse.ArgumentParser(description="Map function for WordCount")
    parser.add_argument('--uri', required=True, help="Chunk address (s3://bucket/key)")
    parser.add_argument('--out', required=True, help="Output address for the partial counts")
    args = parser.parse_args()

    try:
        out = map_chunk(make_blob_store(), args.uri, args.out)
    except WordCountError as e:
        print(f"[!] Map failed ({e.kind.value}): {e}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps([out]))


if __name__ == "__main__":
    main()
