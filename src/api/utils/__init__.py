"""API helpers.

- **responses**: orjson response class used as the application default
"""
