"""
Core: configuration, logging and the feature flag system.
"""
