"""liftkit - install registry components into a project."""

__version__ = "0.2.0"
