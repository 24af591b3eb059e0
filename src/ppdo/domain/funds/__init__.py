"""Special funds."""
