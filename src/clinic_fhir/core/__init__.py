"""Core infrastructure: database engine and sessions."""
