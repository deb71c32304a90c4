"""
API v1 package.
"""
