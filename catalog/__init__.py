"""catalog/ -- Product catalog domain and persistence for NeonThreads.

Layer rule: catalog/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or auth/.
api/ imports from catalog/, not the other way around.
"""
