"""
Shared utilities: logging and the service error hierarchy.
"""
