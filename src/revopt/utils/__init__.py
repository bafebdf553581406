"""Shared utilities: logging, hashing and the last-known-good cache."""
