"""
Test doubles and sample data shared by the test modules
"""
from types import SimpleNamespace

from pywebpush import WebPushException

SUBSCRIPTION = {
    "endpoint": "https://push.example.com/send/abc123",
    "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM", "auth": "tBHItJI5svbpez7KI4CCXg"},
}


class FakePushTransport:
    """Stands in for ``pywebpush.webpush``; records calls and can simulate failures"""

    def __init__(self):
        self.calls = []
        self.status_code = None
        self.error = None

    def __call__(self, subscription_info, data, vapid_private_key, vapid_claims, timeout):
        self.calls.append({
            "subscription_info": subscription_info,
            "data": data,
            "vapid_private_key": vapid_private_key,
            "vapid_claims": vapid_claims,
            "timeout": timeout,
        })
        if self.status_code is not None:
            response = SimpleNamespace(status_code=self.status_code, text="push service error")
            raise WebPushException(f"Push failed: {self.status_code}", response=response)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(status_code=201, text="")


class FakeWebSocket:
    """Minimal websocket double for the connection registry"""

    def __init__(self, fail=False):
        self.accepted = False
        self.sent = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def make_user(user_id, role="customer", is_active=True, **extra):
    user = {
        "id": user_id,
        "name": user_id.replace("-", " ").title(),
        "email": f"{user_id}@example.com",
        "role": role,
        "is_active": is_active,
    }
    user.update(extra)
    return user
