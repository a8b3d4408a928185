"""Notification delivery service package.

The package is split the same way as the rest of our services: ``domain``
holds plain entities, ``application`` the use cases and delivery workers,
``infrastructure`` the database and transport adapters and ``interfaces``
the HTTP API.
"""
