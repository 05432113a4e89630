"""
Token authentication for clinical accounts.

Sessions issued through ``api/auth/login`` carry a DRF token in the
``Authorization: Token <key>`` header.  Accounts whose ward status is
``inactive`` keep their token row but can no longer authenticate with it.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if getattr(user, 'status', 'active') != 'active':
            raise exceptions.AuthenticationFailed('account is inactive')
        return user, token
