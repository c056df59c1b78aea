"""
Core Module

Cross-cutting building blocks shared by the client cache and the server
cache: configuration, structured logging, the exception hierarchy,
interfaces (ports), resilience primitives and error reporting.
"""
