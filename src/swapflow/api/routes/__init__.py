"""Proxy API routes."""
