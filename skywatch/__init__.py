"""SkyWatch: multi-source ADS-B fusion and military aircraft tracking."""

__version__ = "0.1.0"
