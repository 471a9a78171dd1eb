"""HTTP API — app factory and pet routes."""
