"""Clients for external services.

Each client accepts its credentials in __init__ and exposes an
`is_available` property that is True once they are set.
"""

from problemscout.clients.razorpay import RazorpayClient, RazorpayPayment

__all__ = ["RazorpayClient", "RazorpayPayment"]
