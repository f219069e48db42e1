"""
Front Desk intake service

Cross-registry patient identity resolution and visit billing for the
hospital front desk.
"""

__version__ = "1.0.0"
