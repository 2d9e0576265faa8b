"""
Sales Reports

Customer and product reports computed from the gold-layer sales star schema.
"""

__version__ = "1.0.0"
