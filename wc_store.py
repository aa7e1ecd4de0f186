# wc_pipeline/wc_store.py
import os
import sys
import threading

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from wc_address import format_address
from wc_errors import StoreIOError

# --- MinIO/S3 Configuration ---
DEFAULT_REGION = 'us-east-1'
DEFAULT_MINIO_ACCESS_KEY = 'minioadmin'
DEFAULT_MINIO_SECRET_KEY = 'minioadmin'


def make_s3_client(env=None):
    """Build a boto3 S3 client.

    With MINIO_ENDPOINT set the client talks to that MinIO instance, otherwise
    the default AWS credential chain is used.
    """
    env = os.environ if env is None else env
    region = env.get('AWS_REGION', DEFAULT_REGION)
    endpoint = env.get('MINIO_ENDPOINT')
    if not endpoint:
        return boto3.client('s3', region_name=region)
    return boto3.client(
        's3',
        endpoint_url=f'http://{endpoint}',
        aws_access_key_id=env.get('MINIO_ACCESS_KEY', DEFAULT_MINIO_ACCESS_KEY),
        aws_secret_access_key=env.get('MINIO_SECRET_KEY', DEFAULT_MINIO_SECRET_KEY),
        region_name=region,
        config=Config(signature_version='s3v4')
    )


def make_blob_store(env=None):
    env = os.environ if env is None else env
    root = env.get('BLOB_ROOT')
    if root:
        print(f"[*] Using filesystem blob store rooted at '{os.path.abspath(root)}'", file=sys.stderr)
        return FileBlobStore(root)
    return S3BlobStore(make_s3_client(env))


class S3BlobStore:
    def __init__(self, client):
        self.client = client

    def get(self, address):
        bucket, key = address
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response['Body'].read()
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            raise StoreIOError(f"Failed to read {format_address(address)} ({code}): {e}") from e
        except BotoCoreError as e:
            raise StoreIOError(f"Failed to read {format_address(address)}: {e}") from e

    def put(self, address, data):
        bucket, key = address
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            raise StoreIOError(f"Failed to write {format_address(address)} ({code}): {e}") from e
        except BotoCoreError as e:
            raise StoreIOError(f"Failed to write {format_address(address)}: {e}") from e


class MemoryBlobStore:
    """Dict-backed store. Safe for concurrent mappers; last writer wins."""

    def __init__(self, objects=None):
        self._objects = dict(objects or {})
        self._lock = threading.Lock()

    def get(self, address):
        with self._lock:
            try:
                return self._objects[tuple(address)]
            except KeyError:
                raise StoreIOError(f"No such object: {format_address(address)}") from None

    def put(self, address, data):
        if isinstance(data, str):
            data = data.encode('utf-8')
        with self._lock:
            self._objects[tuple(address)] = bytes(data)

    def keys(self, container):
        with self._lock:
            return sorted(key for (bucket, key) in self._objects if bucket == container)


class FileBlobStore:
    """Maps s3://container/key onto <root>/container/key."""

    def __init__(self, root):
        self.root = os.path.abspath(root)

    def _path(self, address):
        bucket, key = address
        path = os.path.normpath(os.path.join(self.root, bucket, key))
        if not path.startswith(os.path.join(self.root, bucket) + os.sep):
            raise StoreIOError(f"Key escapes the store root: {format_address(address)}")
        return path

    def get(self, address):
        path = self._path(address)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise StoreIOError(f"Failed to read {format_address(address)}: {e}") from e

    def put(self, address, data):
        path = self._path(address)
        if isinstance(data, str):
            data = data.encode('utf-8')
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            raise StoreIOError(f"Failed to write {format_address(address)}: {e}") from e
