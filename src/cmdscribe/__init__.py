"""Self-describing command registry: introspected dispatch tables and usage banners."""

__version__ = "0.1.0"
