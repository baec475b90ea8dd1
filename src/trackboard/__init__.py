"""trackboard - in-memory issue tracking with cascading deletes and an audit trail."""

from trackboard._version import version as __version__

__all__ = ["__version__"]
