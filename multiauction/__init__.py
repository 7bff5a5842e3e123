"""
Multi-Auction Settlement Engine

Deterministic settlement for three auction formats over escrowed assets:
- Traditional (ascending, reserve price, dealer acceptance window)
- Dutch (descending price, first buyer wins)
- Penny (fixed-increment bids that reset a timer)
"""

__version__ = "0.1.0"
