"""SQLModel tables for the durable storage backend."""
