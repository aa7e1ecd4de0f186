"""
Unit tests for blob store adapters
"""

import io
import os

import pytest
from unittest.mock import Mock, patch
from botocore.exceptions import ClientError, EndpointConnectionError

from wc_errors import StoreIOError
from wc_store import (
    FileBlobStore, MemoryBlobStore, S3BlobStore, make_blob_store, make_s3_client,
)


def client_error(code, operation):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


class TestMemoryBlobStore:
    """Tests for MemoryBlobStore"""

    def test_put_then_get(self, store):
        store.put(('b', 'k'), b'data')
        assert store.get(('b', 'k')) == b'data'

    def test_str_is_stored_as_utf8(self, store):
        store.put(('b', 'k'), 'héllo')
        assert store.get(('b', 'k')) == 'héllo'.encode('utf-8')

    def test_last_writer_wins(self, store):
        store.put(('b', 'k'), b'first')
        store.put(('b', 'k'), b'second')
        assert store.get(('b', 'k')) == b'second'

    def test_missing_key_is_store_error(self, store):
        with pytest.raises(StoreIOError):
            store.get(('b', 'missing'))

    def test_keys_lists_one_container(self):
        store = MemoryBlobStore({('a', 'x'): b'', ('a', 'w'): b'', ('b', 'y'): b''})
        assert store.keys('a') == ['w', 'x']


class TestFileBlobStore:
    """Tests for FileBlobStore"""

    def test_put_creates_nested_directories(self, tmp_path):
        store = FileBlobStore(str(tmp_path))
        store.put(('bucket', 'maps/run-2/map-0.json'), b'{}')
        assert (tmp_path / 'bucket' / 'maps' / 'run-2' / 'map-0.json').read_bytes() == b'{}'
        assert store.get(('bucket', 'maps/run-2/map-0.json')) == b'{}'

    def test_missing_file_is_store_error(self, tmp_path):
        store = FileBlobStore(str(tmp_path))
        with pytest.raises(StoreIOError):
            store.get(('bucket', 'nope.txt'))

    def test_rejects_keys_escaping_the_container(self, tmp_path):
        store = FileBlobStore(str(tmp_path))
        with pytest.raises(StoreIOError):
            store.put(('bucket', '../other/evil.txt'), b'x')
        assert not os.path.exists(tmp_path / 'other')


class TestS3BlobStore:
    """Tests for S3BlobStore against a mocked boto3 client"""

    def test_get_reads_body(self):
        client = Mock()
        client.get_object.return_value = {'Body': io.BytesIO(b'hello')}
        store = S3BlobStore(client)

        assert store.get(('bucket', 'doc.txt')) == b'hello'
        client.get_object.assert_called_once_with(Bucket='bucket', Key='doc.txt')

    def test_put_uploads_body(self):
        client = Mock()
        S3BlobStore(client).put(('bucket', 'out.json'), b'{}')
        client.put_object.assert_called_once_with(Bucket='bucket', Key='out.json', Body=b'{}')

    def test_client_error_on_get(self):
        client = Mock()
        client.get_object.side_effect = client_error('NoSuchKey', 'GetObject')
        with pytest.raises(StoreIOError) as exc_info:
            S3BlobStore(client).get(('bucket', 'missing.txt'))
        assert 'NoSuchKey' in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ClientError)

    def test_client_error_on_put(self):
        client = Mock()
        client.put_object.side_effect = client_error('AccessDenied', 'PutObject')
        with pytest.raises(StoreIOError) as exc_info:
            S3BlobStore(client).put(('bucket', 'out.json'), b'{}')
        assert 'AccessDenied' in str(exc_info.value)

    def test_connection_error(self):
        client = Mock()
        client.get_object.side_effect = EndpointConnectionError(endpoint_url='http://127.0.0.1:9000')
        with pytest.raises(StoreIOError):
            S3BlobStore(client).get(('bucket', 'doc.txt'))


class TestStoreConfiguration:
    """Tests for environment driven store construction"""

    def test_minio_endpoint(self):
        env = {'MINIO_ENDPOINT': 'minio:9000', 'MINIO_ACCESS_KEY': 'ak', 'MINIO_SECRET_KEY': 'sk'}
        with patch('wc_store.boto3.client') as boto_client:
            make_s3_client(env)
        args, kwargs = boto_client.call_args
        assert args == ('s3',)
        assert kwargs['endpoint_url'] == 'http://minio:9000'
        assert kwargs['aws_access_key_id'] == 'ak'
        assert kwargs['aws_secret_access_key'] == 'sk'
        assert kwargs['region_name'] == 'us-east-1'

    def test_default_aws_chain(self):
        with patch('wc_store.boto3.client') as boto_client:
            make_s3_client({'AWS_REGION': 'eu-west-1'})
        boto_client.assert_called_once_with('s3', region_name='eu-west-1')

    def test_blob_root_selects_filesystem(self, tmp_path):
        store = make_blob_store({'BLOB_ROOT': str(tmp_path)})
        assert isinstance(store, FileBlobStore)
        assert store.root == os.path.abspath(str(tmp_path))

    def test_s3_by_default(self):
        with patch('wc_store.boto3.client') as boto_client:
            store = make_blob_store({})
        assert isinstance(store, S3BlobStore)
        assert store.client is boto_client.return_value
