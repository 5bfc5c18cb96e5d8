"""Infrastructure: cache, queue, external authority and notification implementations."""
