"""
API Routers

    sessions   - guest sessions, sign-up/login, profile
    catalog    - public menu
    cart       - guest and signed-in carts
    orders     - checkout and order history
    admin      - order board, catalog management, invoice uploads
    assistant  - chat relay
    ws         - admin order feed
"""

from storefront.routes import admin, assistant, cart, catalog, orders, sessions, ws

routers = [
    sessions.router,
    catalog.router,
    cart.router,
    orders.router,
    admin.router,
    assistant.router,
    ws.router,
]

__all__ = ["routers"]
