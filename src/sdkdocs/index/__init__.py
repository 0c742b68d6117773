"""Index storage, building and querying."""
