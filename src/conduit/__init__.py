"""conduit — stream a CLI coding assistant to remote clients."""

__version__ = "0.1.0"
