"""
Application Layer

FastAPI surface of the cache subsystem: menus read, admin mutation,
revalidation webhook and the debug health panel.
"""
