"""
Domain services for the ShredMate API client.

Services wrap the endpoint catalogue with session bookkeeping (auth) or
small conveniences, and are what application code calls.
"""
