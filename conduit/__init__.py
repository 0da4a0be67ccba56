"""
Conduit: a RealWorld blogging API backend.
"""

__version__ = "1.0.0"
