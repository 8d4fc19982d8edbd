"""Real-time fan-out of feed changes (publish-only, via Redis pub/sub)."""
