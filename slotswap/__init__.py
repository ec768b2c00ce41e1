"""SlotSwap - calendar slot swapping service"""

__version__ = "1.0.0"
