from .memory_store import InMemoryRecordStore
from .postgres_store import PostgresRecordStore, create_schema
from .store import RecordStore, StoreError

__all__ = ["InMemoryRecordStore", "PostgresRecordStore", "RecordStore", "StoreError", "create_schema"]
