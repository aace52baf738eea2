"""Technical adapters (document services)."""
