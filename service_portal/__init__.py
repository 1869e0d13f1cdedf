"""Supplier portal gateway service."""
