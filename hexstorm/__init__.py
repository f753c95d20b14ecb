"""HexStorm: authoritative server for a two-player hex flood-fill game."""

__version__ = "1.0.0"
