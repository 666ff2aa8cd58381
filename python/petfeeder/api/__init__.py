"""API layer: routes and dependencies."""
