"""Small cross-cutting utilities: retry with backoff, injectable query cache."""
