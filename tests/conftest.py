"""
Pytest configuration and shared fixtures
"""

import pytest
from unittest.mock import Mock

from wc_store import MemoryBlobStore


BUCKET = 'test-bucket'


@pytest.fixture
def store():
    """Empty in-memory blob store"""
    return MemoryBlobStore()


@pytest.fixture
def tracked_store(store):
    """Memory store wrapped in a Mock so tests can assert on get/put calls"""
    return Mock(wraps=store)


@pytest.fixture
def king_text():
    """Single-line document used for the end-to-end example"""
    return b"The king. The king is dead. Long live the king!"


@pytest.fixture
def sample_text():
    """Multi-line sample document"""
    return b"""The quick brown fox jumps over the lazy dog.
The dog was really lazy.
The fox was very quick and brown.
Quick brown foxes are amazing animals.
Lazy dogs sleep all day."""


@pytest.fixture
def sample_doc(store, sample_text):
    """sample_text stored at s3://test-bucket/doc.txt"""
    store.put((BUCKET, 'doc.txt'), sample_text)
    return f's3://{BUCKET}/doc.txt'
