"""Book Vault - personal library catalog

This package contains:
- REST API and static web UI (api.py, static/)
- Book storage over SQLite (library.py, database.py)
- Data model (book.py)
- JSON bulk importer (importer.py)
- CLI interface (main.py)
"""
