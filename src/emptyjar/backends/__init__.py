"""Interchangeable persistence backends."""

from emptyjar.backends.base import Backend, BackendKind
from emptyjar.backends.cloud import CloudBackend
from emptyjar.backends.cloud_client import CloudClient
from emptyjar.backends.local import LocalBackend

__all__ = ["Backend", "BackendKind", "CloudBackend", "CloudClient", "LocalBackend"]
