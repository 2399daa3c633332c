"""Place converted media into empty Resolume Arena clip slots over the HTTP API."""

__version__ = "0.1.0"
