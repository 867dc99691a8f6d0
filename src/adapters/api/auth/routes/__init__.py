"""Endpoint modules of the authentication router."""
