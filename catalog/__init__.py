"""Book Catalog - Core Application Package

This package contains the core application modules including:
- API endpoint (api.py)
- Data access layer (library.py)
- Client presentation controller (manager.py, placement.py)
- CLI interface (main.py)
- Data models (book.py)
- Database layer (database.py)
"""
