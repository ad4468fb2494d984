"""assetmigrator - move local assets into a remote artifact store and emit SQL."""

from assetmigrator.version import __version__

__all__ = ["__version__"]
