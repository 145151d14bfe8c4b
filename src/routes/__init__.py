"""
API Routes Package
==================
Helpers shared by the handlers in api.py.

Modules:
  helpers  - analysis/entry prompt builders, error payloads, text clipping
"""
