"""wfc-terrain - Wave Function Collapse terrain generation."""

__version__ = "0.1.0"
