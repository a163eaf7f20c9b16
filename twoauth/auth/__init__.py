"""OAuth 1.0a authentication: models, signing, token storage and the PIN flow."""
