"""SQLite song store used as the lyrics cache"""

from .database import SongStore, DATABASE_VERSION

__all__ = ['SongStore', 'DATABASE_VERSION']
