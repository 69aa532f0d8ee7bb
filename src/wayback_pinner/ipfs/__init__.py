"""IPFS pinning backends: local Kubo node and remote pinning services."""
