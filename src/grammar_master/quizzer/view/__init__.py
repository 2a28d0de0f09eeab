"""Console presentation for practice sessions."""
