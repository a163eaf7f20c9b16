"""OAuth 1.0a signing and the PIN-based authorization flow."""

from .flow import FlowState, OAuthEndpoints, OAuthFlow
from .signer import Signer


__all__ = ["FlowState", "OAuthEndpoints", "OAuthFlow", "Signer"]
