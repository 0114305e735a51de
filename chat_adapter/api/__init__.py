"""HTTP API for the adapter."""
