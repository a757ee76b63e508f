"""vinylstats - playlist statistics over the Spotify catalog API."""

__version__ = "0.1.0"
