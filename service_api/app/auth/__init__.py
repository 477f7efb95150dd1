"""
Identity package.

- verifier: verifies Firebase ID tokens and shapes the ``Principal``.
- credentials: startup credential chain that initializes Firebase Admin.
"""

from .verifier import IdentityVerifier, Principal

__all__ = ["IdentityVerifier", "Principal"]
