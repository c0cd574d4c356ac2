"""imgroute — configuration store for image-transformation routing."""

__version__ = "0.1.0"
