"""
Load Matching Engine - Utilities Package

Common utilities and helpers used across the load matching engine.
"""

from .zip_utils import Endpoint, extract_endpoints, extract_zips, sanitize_zip

__all__ = ['Endpoint', 'extract_endpoints', 'extract_zips', 'sanitize_zip']
