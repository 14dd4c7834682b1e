"""Pure domain layer: validation engine, record schemas, analytics and time helpers."""
