"""
Pantry Tracker

Quantity-tracked inventory kept in a document store, fed by manual entry
and by objects detected in uploaded photos or camera frames.
"""

__version__ = "1.0.0"
