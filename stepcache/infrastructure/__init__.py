"""
Infrastructure Layer

Server-side caching primitives and backend clients.
"""
