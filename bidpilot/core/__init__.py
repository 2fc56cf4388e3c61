"""Core infrastructure: settings, database, clock, logging and scheduling."""
