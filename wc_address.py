# wc_pipeline/wc_address.py
import re
from collections import namedtuple

from wc_errors import AddressParseError

SCHEME = 's3'

_ADDRESS_RE = re.compile(r'^s3://([^/]+)/(.+)$', re.DOTALL)

BlobAddress = namedtuple('BlobAddress', ['container', 'key'])


def parse_address(address):
    """Parse an 's3://container/key' address into a BlobAddress.

    Everything after the first '/' following the container is the key, so keys
    may contain further separators.
    """
    if not isinstance(address, str):
        raise AddressParseError(f"Invalid blob address: {address!r}")
    match = _ADDRESS_RE.match(address)
    if not match:
        raise AddressParseError(f"Invalid blob address: {address!r} (expected {SCHEME}://container/key)")
    return BlobAddress(match.group(1), match.group(2))


def format_address(address):
    container, key = address
    if not container or not key:
        raise AddressParseError(f"Blob address needs a container and a key: {address!r}")
    return f"{SCHEME}://{container}/{key}"


def normalize_prefix(prefix):
    """Collapse trailing '/' to exactly one. An empty prefix stays empty."""
    prefix = (prefix or '').rstrip('/')
    return f"{prefix}/" if prefix else ''


def chunk_key(prefix, index):
    return f"{normalize_prefix(prefix)}chunk-{index}.txt"


# Key layout used by the driver: <phase>/<run-id>-<parts>/...
def split_prefix(run_id, parts):
    return f"splits/{run_id}-{parts}/"


def map_key(run_id, parts, index):
    return f"maps/{run_id}-{parts}/map-{index}.json"


def final_key(run_id, parts):
    return f"reduce/{run_id}-{parts}/final.json"
