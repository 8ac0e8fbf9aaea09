"""Helpers for syncing configuration documents: request headers, multipart parsing, msgpack parameters, version bookkeeping and status notifications."""

__version__ = "0.1.0"