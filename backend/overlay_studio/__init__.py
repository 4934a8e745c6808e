"""
Overlay Studio - place a decorative overlay on an uploaded photo and export the composite.
"""

__version__ = "1.0.0"
