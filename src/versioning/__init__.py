"""Version models, ordering and query matching."""
