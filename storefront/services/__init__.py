"""
                        Services Module

Business logic behind the API. External dependencies follow the hybrid
pattern: each has a development implementation and a real one, picked by
ENV_MODE in a cached factory.

Services:
    - storage: guest key-value storage (JSON file / Redis)
    - cart: guest and signed-in cart stores
    - catalog: menu reads, filters and admin CRUD
    - sessions: scoped guest and user sessions
    - checkout: cart to order in one transaction
    - orders: order views and status workflow
    - order_feed: admin order change broadcaster
    - assistant: chat relay (mock / webhook)
    - invoices: invoice upload and hand-off to Celery
"""
