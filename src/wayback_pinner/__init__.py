"""wayback_pinner - archive webpages and pin them to IPFS."""

__version__ = "0.1.0"
