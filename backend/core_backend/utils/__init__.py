"""
Utility helpers for core_backend.
"""
