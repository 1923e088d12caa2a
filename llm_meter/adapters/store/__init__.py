"""Store adapters for the tier table and the usage counter.

The service starts with in-process stores; the abstract interfaces leave room
for a shared backend later without changing the API layer.
"""
