"""
packed-voting package initializer

Keep this module lightweight. Do not import the web stack here, so the
runtime can be used without FastAPI being imported.
"""

__all__ = []
