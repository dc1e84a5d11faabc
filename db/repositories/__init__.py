"""Repository layer for the local contact store.

- contacts: get_by_market, count_per_market, upsert
"""
