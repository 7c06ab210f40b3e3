"""
VAPID key helpers for web push
"""
import base64

from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid


def b64url(raw: bytes) -> str:
    """URL-safe base64 without padding, as used by the Push API"""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_vapid_keys() -> dict:
    """Generate a P-256 key pair encoded the way browsers and pywebpush expect"""
    vapid = Vapid()
    vapid.generate_keys()
    public_raw = vapid.public_key.public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
    )
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return {"public_key": b64url(public_raw), "private_key": b64url(private_raw)}
