"""SQLite task store."""
