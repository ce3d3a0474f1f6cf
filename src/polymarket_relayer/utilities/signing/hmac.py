import base64
import hashlib
import hmac


def build_hmac_signature(
    secret: str,
    timestamp: str,
    method: str,
    request_path: str,
    body: str | None = None,
) -> str:
    """
    Create an HMAC signature by signing a payload with the secret.

    The secret is url-safe base64 encoded; so is the returned digest.
    """
    base64_secret = base64.urlsafe_b64decode(secret)
    message = str(timestamp) + str(method) + str(request_path)
    if body:
        message += body

    h = hmac.new(base64_secret, bytes(message, "utf-8"), hashlib.sha256)
    return base64.urlsafe_b64encode(h.digest()).decode("utf-8")
