"""Application layer - caches and services orchestrating catalog calls."""
