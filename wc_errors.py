# wc_pipeline/wc_errors.py
from enum import Enum


class ErrorKind(str, Enum):
    ADDRESS_PARSE = 'address_parse'
    STORE_IO = 'store_io'
    SERIALIZATION = 'serialization'
    CONFIGURATION_MISMATCH = 'configuration_mismatch'
    BAD_REQUEST = 'bad_request'


class WordCountError(Exception):
    """Base class for every failure a split/map/reduce call can report."""
    kind = None
    http_status = 500

    def to_payload(self):
        return {"status": "FAIL", "kind": self.kind.value, "message": str(self)}


class AddressParseError(WordCountError):
    kind = ErrorKind.ADDRESS_PARSE
    http_status = 400


class StoreIOError(WordCountError):
    kind = ErrorKind.STORE_IO
    http_status = 500


class SerializationError(WordCountError):
    kind = ErrorKind.SERIALIZATION
    http_status = 500


class ConfigurationMismatchError(WordCountError):
    kind = ErrorKind.CONFIGURATION_MISMATCH
    http_status = 400


class RequestError(WordCountError):
    """Missing or out-of-range request parameter (e.g. parts <= 0)."""
    kind = ErrorKind.BAD_REQUEST
    http_status = 400


_ERRORS_BY_KIND = {cls.kind: cls for cls in (
    AddressParseError, StoreIOError, SerializationError,
    ConfigurationMismatchError, RequestError,
)}


def error_from_payload(payload, default_message="unknown error"):
    """Rebuild the typed exception from a FAIL payload returned by a service."""
    message = default_message
    kind = None
    if isinstance(payload, dict):
        message = payload.get('message') or default_message
        try:
            kind = ErrorKind(payload.get('kind'))
        except ValueError:
            kind = None
    return _ERRORS_BY_KIND.get(kind, WordCountError)(message)
