"""Per-triangle surface complexity layers for 3D triangle meshes."""

__version__ = "0.1.0"