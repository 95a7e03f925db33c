"""Print a fresh VAPID key pair for the push transport (.env format)."""
import base64

from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid


def to_base64_url(data):
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('utf-8')


vapid = Vapid()
vapid.generate_keys()

# Raw 32-byte private scalar and uncompressed public point (0x04 + x + y)
private_bytes = vapid.private_key.private_numbers().private_value.to_bytes(32, byteorder='big')
public_bytes = vapid.public_key.public_bytes(
    encoding=serialization.Encoding.X962,
    format=serialization.PublicFormat.UncompressedPoint
)

print(f"VAPID_PRIVATE_KEY={to_base64_url(private_bytes)}")
print(f"VAPID_PUBLIC_KEY={to_base64_url(public_bytes)}")
print("VAPID_SUBJECT=mailto:support@weddingplanner.com")
