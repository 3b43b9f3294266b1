"""Utility helpers for DNS Serial Check."""
