"""
Durable key-value storage.

Components:
- kv_store.py: SQLite-backed and in-memory key-value stores
- buffered.py: write-behind adapter + periodic flush loop
- slot.py: one key bound to a serializer/deserializer pair
"""
