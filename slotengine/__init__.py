"""
slotengine - availability resolution and bookable slot generation.
"""

__version__ = "0.1.0"
