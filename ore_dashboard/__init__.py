"""
ORE mining dashboard.
"""

__version__ = "0.1.0"
