"""
Authentication application.

Provides the custom email-based User model shared by every payable domain.

Usage:
    from authentication.models import User
"""
