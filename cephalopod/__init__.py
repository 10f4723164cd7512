"""Core pieces of a small 2D game framework: geometry helpers, sprite packing and atlases, scene transitions, JSON and image encoders."""

__version__ = "0.1.0"