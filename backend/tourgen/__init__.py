"""Property tour generator: photos, video or panorama → navigable 3D world."""

__version__ = "0.1.0"
