"""
Merchandise store app.

Catalogue, carts and paid orders. MERCHANDISE_ORDER payments are computed
from a user's cart and turned into an order on completion.
"""
