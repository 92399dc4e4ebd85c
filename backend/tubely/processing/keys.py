import base64
import secrets

# 32 random bytes -> 43 base64url characters once padding is stripped
ASSET_ID_BYTES = 32


def random_asset_id() -> str:
    raw = secrets.token_bytes(ASSET_ID_BYTES)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def thumbnail_file_name(ext: str) -> str:
    return f"{random_asset_id()}.{ext}"


def video_object_key(prefix: str) -> str:
    return f"{prefix}/{random_asset_id()}.mp4"
