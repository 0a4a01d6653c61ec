"""Authentication module for Microsoft Graph."""

from .microsoft_auth import MicrosoftGraphAuth

__all__ = ["MicrosoftGraphAuth"]
