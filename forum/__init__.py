"""Discussion forum backend."""
