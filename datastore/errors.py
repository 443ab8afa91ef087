"""Exceptions raised by business data providers."""


class DataStoreError(Exception):
    """Base error for data provider failures."""
    pass


class RecordNotFoundError(DataStoreError):
    """A referenced client, order or service does not exist."""
    pass


class DuplicateRecordError(DataStoreError):
    """A record with the same unique key already exists."""
    pass
