"""
Utils package
"""
from .vapid import b64url, generate_vapid_keys

__all__ = [
    'b64url',
    'generate_vapid_keys',
]
