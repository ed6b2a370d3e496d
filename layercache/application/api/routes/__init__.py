"""Route modules: health and cache administration."""
