"""Utility helpers for the toolbridge package."""
