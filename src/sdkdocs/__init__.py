"""Local search over SDK guides and generated API-reference markdown."""

__version__ = "0.1.0"
