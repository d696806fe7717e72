"""
Identity Core - user lookup and account state.
"""

from inkwell.kernel.identity.identity_service import IdentityService

__all__ = ["IdentityService"]
