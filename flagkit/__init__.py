"""
flagkit - feature flags with user and group overrides.
"""

__version__ = "0.1.0"
