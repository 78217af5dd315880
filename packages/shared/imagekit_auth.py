"""ImageKit client-side upload authentication parameters."""

import hashlib
import hmac
import time
import uuid
from typing import Dict, Optional, Union

# ImageKit rejects expiry more than one hour ahead.
DEFAULT_EXPIRE_SECONDS = 30 * 60


def sign_upload(private_key: str, token: str, expire: int) -> str:
    """HMAC-SHA1 of token + expire, hex encoded."""
    payload = f"{token}{expire}"
    return hmac.new(
        private_key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1
    ).hexdigest()


def get_upload_auth_params(
    private_key: str,
    public_key: str,
    token: Optional[str] = None,
    expire: Optional[int] = None,
) -> Dict[str, Union[str, int]]:
    """Return {token, expire, signature, publicKey} for a browser upload."""
    token = token or str(uuid.uuid4())
    expire = expire or int(time.time()) + DEFAULT_EXPIRE_SECONDS
    return {
        "token": token,
        "expire": expire,
        "signature": sign_upload(private_key, token, expire),
        "publicKey": public_key,
    }


def verify_upload_signature(private_key: str, token: str, expire: int, signature: str) -> bool:
    if not private_key or not signature:
        return False
    if int(expire) < int(time.time()):
        return False
    return hmac.compare_digest(signature, sign_upload(private_key, token, int(expire)))
