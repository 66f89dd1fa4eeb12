"""Local repository access: archives, metadata, descriptors and lookup."""
