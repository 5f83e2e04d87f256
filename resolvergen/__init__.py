"""Build-time generator for C# field resolver units."""

__version__ = "0.3.0"
