"""GUI helper utilities."""
