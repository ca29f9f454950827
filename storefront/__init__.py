"""
                Cloud Kitchen Storefront

Async backend for a food-ordering storefront and admin console:
menu browsing, guest and account carts, transactional checkout,
order tracking, and webhook-driven assistant / invoice automations.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
