"""HTTP API for the registration search."""
