"""
revopt: resilient dataset loader.

Fetches a manifest, schema and CSV payload from a remote source, verifies
integrity and shape, and falls back to a last-known-good cached copy when
the network path fails.
"""

from importlib.metadata import version

__version__ = version("revopt")

__all__ = ["__version__"]
