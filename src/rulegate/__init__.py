"""rulegate — policy rule engine for network security appliances."""

__version__ = "0.1.0"
