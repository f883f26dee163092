"""PrecipWiz: animated global precipitation map, 1954-2014."""

__version__ = "0.1.0"
