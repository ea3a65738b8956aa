"""
Budget hotel reservation core.

Availability resolution, promotion validation with abuse limits, pricing and
the booking lifecycle (payment, QR check-in/out, periodic status sweep).
"""

__version__ = "0.1.0"
