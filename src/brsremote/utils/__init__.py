"""Utility helpers for brsremote."""
