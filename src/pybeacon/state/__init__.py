"""State/store layer.

This package is the single owner of per-device state: every incoming
packet is merged here, and everything handed out is a copy.
"""
