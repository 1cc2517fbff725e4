# src/taskflow/__init__.py

"""Personal task board: task store, ordering engine and filter projection."""

__version__ = "0.1.0"
