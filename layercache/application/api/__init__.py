"""API routes, models and dependencies."""
