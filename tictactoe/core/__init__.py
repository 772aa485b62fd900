"""Core game rules (turn order, win detection, scoreboard).

Kept free of Redis and FastAPI concerns so it can be reused by the store, routes, and tests.
"""
