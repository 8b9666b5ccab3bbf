"""
qvote node package initializer

Keep this module lightweight. Do not import FastAPI here, so the election
runtime can be used without the HTTP stack loaded.
"""

__all__ = []
