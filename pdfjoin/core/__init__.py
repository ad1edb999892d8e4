"""Shared helpers used across :mod:`pdfjoin` and the service."""
