"""Credential refresh service."""
