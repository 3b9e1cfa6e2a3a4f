"""
Parently - AI assistant backend for parents and family finances.
"""
__version__ = "1.0.0"
