"""KnownToads swap backend: route USDC into creator coins on Base."""

__version__ = "0.3.0"
