"""SQLite (aiosqlite) implementations for local development and tests."""
