"""
Catalog app: the gym packages customers can buy.

Packages keep their price, currency and billing period as the display
strings editors type in the dashboard.  ``catalog.lookup`` is the only
place those strings are turned into typed values for checkout.
"""
