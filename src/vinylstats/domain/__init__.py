"""Domain layer - exceptions, DTOs, ports and pure aggregation logic."""
