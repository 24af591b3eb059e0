"""Search indexing, ranking and querying."""
