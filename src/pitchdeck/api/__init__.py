"""Local staging API."""
