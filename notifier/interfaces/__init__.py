"""Inbound adapters exposing the notification service."""
