"""Domain layer - business logic."""
