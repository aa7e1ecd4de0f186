# wc_pipeline/wc_driver.py
import argparse
import sys
import time
import uuid
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor, wait

import requests

from wc_address import final_key, format_address, map_key, parse_address, split_prefix
from wc_errors import WordCountError, error_from_payload
from wc_map import map_chunk
from wc_reduce import reduce_partials
from wc_split import DEFAULT_PARTS, check_parts, split
from wc_store import FileBlobStore

DEFAULT_MAX_WORKERS = 8
REQUEST_TIMEOUT = 60

PipelineResult = namedtuple('PipelineResult', ['output', 'chunks', 'partials', 'split_ms', 'map_ms', 'reduce_ms'])


def now_ms():
    return int(time.time() * 1000)


class HttpPhaseClient:
    """Calls one role service over its query-parameter HTTP API."""

    def __init__(self, base_url, timeout=REQUEST_TIMEOUT, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path, params):
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        if response.status_code != 200:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            raise error_from_payload(payload, f"{path} returned HTTP {response.status_code}: {response.text}")
        return response.json()

    def role(self):
        return self._get('/api/role', {})['role']

    def split(self, source, parts, out_prefix):
        return self._get('/split', {'input_s3': source, 'parts': parts, 'out_prefix': out_prefix})

    def map(self, chunk, out):
        return self._get('/map', {'chunk_s3': chunk, 'out_s3': out})['output']

    def reduce(self, inputs, out):
        # requests encodes a list value as a repeated parameter: in=a&in=b
        return self._get('/reduce', {'in': list(inputs), 'out_s3': out})['output']


class LocalPhaseClient:
    """Runs a phase in-process against `store`, with the same surface as HttpPhaseClient."""

    def __init__(self, store):
        self.store = store

    def split(self, source, parts, out_prefix):
        return split(self.store, source, parts, out_prefix)

    def map(self, chunk, out):
        return map_chunk(self.store, chunk, out)

    def reduce(self, inputs, out):
        return reduce_partials(self.store, inputs, out)


def run_pipeline(splitter, mapper, reducer, source, parts, run_id, max_workers=DEFAULT_MAX_WORKERS):
    """Split `source`, map every chunk concurrently, then reduce all partials.

    At most `max_workers` map calls are in flight. The reducer only runs once
    every map call has finished and all of them succeeded.
    """
    check_parts(parts)
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")
    bucket = parse_address(source).container

    print(f"=== Split phase ({parts} parts) ===")
    start = now_ms()
    chunks = splitter.split(source, parts, split_prefix(run_id, parts))
    split_ms = now_ms() - start
    print(f"Split time: {split_ms} ms")

    print("=== Map phase ===")
    partials = [format_address((bucket, map_key(run_id, parts, i))) for i in range(len(chunks))]
    start = now_ms()
    with ThreadPoolExecutor(max_workers=min(max_workers, max(len(chunks), 1))) as pool:
        futures = [pool.submit(mapper.map, chunk, out) for chunk, out in zip(chunks, partials)]
        wait(futures)
    map_ms = now_ms() - start
    failures = [f.exception() for f in futures if f.exception() is not None]
    if failures:
        print(f"[!] {len(failures)}/{len(futures)} map calls failed; skipping reduce.", file=sys.stderr)
        raise failures[0]
    print(f"Map time: {map_ms} ms")

    print("=== Reduce phase ===")
    final = format_address((bucket, final_key(run_id, parts)))
    start = now_ms()
    output = reducer.reduce(partials, final)
    reduce_ms = now_ms() - start
    print(f"Reduce time: {reduce_ms} ms")

    return PipelineResult(output, chunks, partials, split_ms, map_ms, reduce_ms)


def print_summary(result):
    print("=== Summary ===")
    print(f"Split:  {result.split_ms} ms")
    print(f"Map:    {result.map_ms} ms")
    print(f"Reduce: {result.reduce_ms} ms")
    print(f"TOTAL:  {result.split_ms + result.map_ms + result.reduce_ms} ms")
    print(f"Output: {result.output}")


def main():
    parser = argparse.ArgumentParser(description="Runs split -> map -> reduce for WordCount")
    parser.add_argument('--bucket', default=None, help="Bucket holding doc.txt when --input is not given")
    parser.add_argument('--input', default=None, help="Input document address (default: s3://<bucket>/doc.txt)")
    parser.add_argument('--parts', type=int, default=DEFAULT_PARTS, help="Number of chunks / mapper calls")
    parser.add_argument('--run_id', default=None, help="Run identifier used in output keys")
    parser.add_argument('--max_workers', type=int, default=DEFAULT_MAX_WORKERS, help="Max concurrent map calls")
    parser.add_argument('--timeout', type=float, default=REQUEST_TIMEOUT, help="HTTP request timeout in seconds")
    parser.add_argument('--splitter', default='http://127.0.0.1:8080', help="Splitter service URL")
    parser.add_argument('--mapper', default='http://127.0.0.1:8080', help="Mapper service URL")
    parser.add_argument('--reducer', default='http://127.0.0.1:8080', help="Reducer service URL")
    parser.add_argument('--local_root', default=None,
                        help="Run every phase in-process against a filesystem store rooted here")
    args = parser.parse_args()

    if not args.input and not args.bucket:
        parser.error("one of --input or --bucket is required")
    source = args.input or f"s3://{args.bucket}/doc.txt"
    run_id = args.run_id or uuid.uuid4().hex[:8]

    if args.local_root:
        splitter = mapper = reducer = LocalPhaseClient(FileBlobStore(args.local_root))
    else:
        splitter = HttpPhaseClient(args.splitter, args.timeout)
        mapper = HttpPhaseClient(args.mapper, args.timeout)
        reducer = HttpPhaseClient(args.reducer, args.timeout)

    print(f"[*] Run {run_id}: {source} with {args.parts} parts")
    try:
        result = run_pipeline(splitter, mapper, reducer, source, args.parts, run_id, args.max_workers)
    except WordCountError as e:
        kind = e.kind.value if e.kind else 'error'
        print(f"[!!!] Pipeline failed ({kind}): {e}", file=sys.stderr)
        sys.exit(1)
    except requests.RequestException as e:
        print(f"[!!!] Pipeline failed (transport): {e}", file=sys.stderr)
        sys.exit(1)
    print_summary(result)


if __name__ == "__main__":
    main()
