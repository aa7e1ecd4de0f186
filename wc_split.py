# wc_pipeline/wc_split.py
import argparse
import json
import sys

from wc_address import BlobAddress, chunk_key, format_address, parse_address
from wc_errors import RequestError, WordCountError
from wc_store import make_blob_store

DEFAULT_PARTS = 3


def check_parts(parts):
    if isinstance(parts, bool) or not isinstance(parts, int) or parts < 1:
        raise RequestError(f"parts must be a positive integer, got {parts!r}")
    return parts


def split_lines(data, parts):
    """Cut raw document bytes into `parts` contiguous runs of lines.

    Every chunk but the last holds ceil(lines / parts) lines; when parts exceeds
    the line count the trailing chunks are empty. Joining the chunks with b'\\n'
    gives back `data` unchanged.
    """
    check_parts(parts)
    lines = data.split(b'\n')
    chunk_size = (len(lines) + parts - 1) // parts
    chunks = []
    for i in range(parts):
        start = min(i * chunk_size, len(lines))
        end = min((i + 1) * chunk_size, len(lines))
        chunks.append(b'\n'.join(lines[start:end]))
    return chunks


def split(store, source, parts, out_prefix):
    """Split the document at `source` and persist each chunk next to it.

    Returns the chunk addresses in index order. A store failure aborts the call
    and leaves already written chunks in place.
    """
    bucket, key = parse_address(source)
    check_parts(parts)

    print(f"[*] Splitting {source} into {parts} parts under prefix '{out_prefix}'", file=sys.stderr)
    data = store.get(BlobAddress(bucket, key))
    urls = []
    for i, chunk in enumerate(split_lines(data, parts)):
        out = BlobAddress(bucket, chunk_key(out_prefix, i))
        store.put(out, chunk)
        urls.append(format_address(out))
    print(f"[+] Wrote {len(urls)} chunks for {source}", file=sys.stderr)
    return urls


def main():
    parser = argparse.ArgumentParser(description="Split phase for WordCount")
    parser.add_argument('--uri', required=True, help="Input document address (s3://bucket/key)")
    parser.add_argument('--parts', type=int, default=DEFAULT_PARTS, help="Number of chunks")
    parser.add_argument('--out_prefix', required=True, help="Key prefix for the chunks")
    args = parser.parse_args()

    try:
        urls = split(make_blob_store(), args.uri, args.parts, args.out_prefix)
    except WordCountError as e:
        print(f"[!] Split failed ({e.kind.value}): {e}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(urls))


if __name__ == "__main__":
    main()
