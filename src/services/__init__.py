"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for diploma assets, PDF
generation, email composition and S3 interactions.
"""

__all__ = ['assets', 'diploma', 'email', 'http', 's3', 'templates']
