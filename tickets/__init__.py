"""
Appointment Invitation Tickets

A FastAPI service for appointments with batches of single-use invitation
links: shortened, QR encoded, emailed, and redeemed exactly once.
"""

__version__ = "1.0.0"
