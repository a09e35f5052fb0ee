"""nodekeeper — install, peer and upgrade a two-engine validator node."""

__version__ = "0.1.0"
