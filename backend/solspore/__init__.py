"""SolSpore: esports wagering markets settled over Solana payment rails."""

__version__ = "0.1.0"
__author__ = "SolSpore Team"

__all__ = ["__version__", "__author__"]
