"""
sei-liquidity: pool and position data for the Sei CLMM DEXes.
"""

__version__ = "0.1.0"
