"""Madrassati portal backend."""
