"""
Batch document conversion on top of pandoc.

This package converts many input items per invocation with the external
pandoc engine, giving each item its own temporary workspace and harvesting
any media files pandoc extracts along the way.
"""

__version__ = "1.0.0"
