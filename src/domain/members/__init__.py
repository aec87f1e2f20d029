"""Members and their contributions."""
