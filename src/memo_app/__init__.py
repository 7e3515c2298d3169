"""Memo App - priority-aware memo CRUD backend."""

__version__ = "0.1.0"
