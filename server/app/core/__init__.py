"""
Core package for Feature Studio.

This package contains core functionality including:
- config: Application settings and configuration
- features: Static feature catalogue (inputs, defaults, allow-lists, endpoints)

Core modules are imported individually:
- from app.core.config import settings
- from app.core.features import FeatureType, FEATURE_CONFIGS
"""
