"""Pokemon fusion service: fused names, types, stats and Pokedex entries over HTTP."""

__version__ = "0.3.0"
