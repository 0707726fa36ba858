"""
Orders app: the store of package purchases and their subscriptions.

It owns order numbering, subscription activation and expiry, and the
customer and admin views over orders.  Payment state is written by the
``payments`` app's reconciler.
"""
