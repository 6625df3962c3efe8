"""Infrastructure adapters (logging, database, email)."""
