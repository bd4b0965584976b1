"""Arena map generation, wave management and behaviour-tree enemy tasks for a wave-based shooter."""

__version__ = "0.1.0"

__all__ = ["ai", "game", "mapgen_v1", "mapgen_v2", "settings", "symmetry", "world"]