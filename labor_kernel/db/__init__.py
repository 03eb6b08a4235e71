"""Database infrastructure: declarative base, engine/session management, precision helpers."""
