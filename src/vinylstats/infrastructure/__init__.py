"""Infrastructure layer - HTTP integrations, rate limiting, observability."""
