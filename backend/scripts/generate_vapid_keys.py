"""Generate a VAPID key pair for web push notifications.

Usage: python scripts/generate_vapid_keys.py [mailto:subject]
"""

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from utils.vapid import generate_vapid_keys


def main(argv: list[str]) -> int:
    subject = argv[1] if len(argv) > 1 else "mailto:admin@snacksshop.com"
    keys = generate_vapid_keys()

    print("Add these to your .env file:\n")
    print(f"VAPID_PUBLIC_KEY={keys['public_key']}")
    print(f"VAPID_PRIVATE_KEY={keys['private_key']}")
    print(f"VAPID_SUBJECT={subject}\n")
    print("Keep the private key secret. Clients fetch the public key from /api/push/vapid-key.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
