"""Backend-facing services: session state, request gateway, endpoint catalogue."""
