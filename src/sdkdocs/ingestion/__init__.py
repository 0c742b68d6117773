"""Source discovery and markdown parsing."""
