"""Database engine, models and repositories."""
