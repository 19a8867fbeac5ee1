"""BlogPilot - scheduled blog writing and Shopify publishing."""

__version__ = "0.1.0"
