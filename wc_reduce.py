# wc_pipeline/wc_reduce.py
import argparse
import json
import sys
from functools import reduce

from wc_address import parse_address
from wc_counts import Accumulator, decode_counts, encode_counts
from wc_errors import WordCountError
from wc_store import make_blob_store


def merge_counts(partials):
    """Fold partial counts into one total. Order and grouping do not matter."""
    return reduce(Accumulator.merge, partials, Accumulator())


def reduce_partials(store, inputs, out):
    """Sum the partial counts stored at `inputs` and write the total to `out`.

    Duplicated inputs are counted once per occurrence. Any unreadable or
    malformed partial fails the whole call before anything is written.
    """
    input_addresses = [parse_address(path) for path in inputs]
    out_address = parse_address(out)

    partials = []
    for path, address in zip(inputs, input_addresses):
        partials.append(decode_counts(store.get(address), source=path))

    total = merge_counts(partials)
    store.put(out_address, encode_counts(total))
    print(f"[+] Reduced {len(partials)} partials: {len(total)} unique words -> {out}", file=sys.stderr)
    return out


def main():
    parser = argparse.ArgumentParser(description="Reduce function for WordCount")
    parser.add_argument('--inputs', required=True, help="Comma-separated list of partial count addresses")
    parser.add_argument('--out', required=True, help="Final output address")
    args = parser.parse_args()

    inputs = [path for path in args.inputs.split(',') if path]
    try:
        out = reduce_partials(make_blob_store(), inputs, args.out)
    except WordCountError as e:
        print(f"[!] Reduce failed ({e.kind.value}): {e}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps([out]))


if __name__ == "__main__":
    main()
