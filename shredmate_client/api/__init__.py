"""
Endpoint catalogue for the ShredMate backend.

Each API class groups the request descriptors of one backend area. The
descriptors carry no behaviour; they are sent through an API client.
"""
