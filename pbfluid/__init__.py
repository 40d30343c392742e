"""Position-based fluid simulation of particles in a tank, with a matplotlib viewer."""

__version__ = "0.1.0"
__all__ = ["__version__"]