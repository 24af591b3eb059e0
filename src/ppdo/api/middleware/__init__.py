"""API middleware and auth dependencies."""
