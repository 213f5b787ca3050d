"""Headless client core for a tile-based online role-playing game: protocol, map, animation, network and scenes."""

__version__ = "0.1.0"