"""
The `core` package holds the process-local store and the service functions
the API routers call.
"""
