"""Token and role helpers for API authorization."""
