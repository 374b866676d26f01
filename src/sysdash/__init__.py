"""sysdash - live host metrics dashboard streamed over Server-Sent Events."""

__version__ = "0.1.0"
