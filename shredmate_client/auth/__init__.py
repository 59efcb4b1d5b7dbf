"""
Authentication package for the ShredMate API client.

This package contains credential storage (in-memory and secure keyring or
encrypted-file backends) and the token provider that refreshes access tokens.
"""
