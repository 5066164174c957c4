"""
Utility functions for visualization module.
"""

import base64

# Domain tag appended to content ids so they read as addr-spec style MIME ids
CONTENT_ID_DOMAIN = "pulse"


def encode_image(image_bytes: bytes) -> str:
    """Base64 text of PNG bytes, for embedding in markup."""
    return base64.b64encode(image_bytes).decode('ascii')


def render_img_data_uri(image_bytes: bytes) -> str:
    """Takes PNG bytes and returns a base64 encoded data URI."""
    return f"data:image/png;base64,{encode_image(image_bytes)}"


def hash_bytes(image_bytes: bytes) -> int:
    """
    Stable, non-cryptographic hash of image content.

    Polynomial hash over the bytes read as signed values, multiplier 31,
    wrapped to a signed 32-bit int and made non-negative.
    """
    h = 1
    for b in image_bytes:
        if b > 127:
            b -= 256
        h = (31 * h + b) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return abs(h)


def content_id_for(image_bytes: bytes) -> str:
    """Content-ID for an attached image, e.g. '1234567@pulse'."""
    return f"{hash_bytes(image_bytes)}@{CONTENT_ID_DOMAIN}"


def content_id_reference(content_id: str) -> str:
    return f"cid:{content_id}"
