import hashlib
import hmac
import time
import uuid
from flask import Blueprint, jsonify, current_app

uploads_bp = Blueprint('uploads', __name__)

def get_authentication_parameters(private_key, public_key, ttl, token=None, now=None):
    """Signed, short-lived parameters for a direct client upload to ImageKit.

    ``signature`` is HMAC-SHA1(private_key, token + expire) in hex, which is
    what the ImageKit upload API verifies.
    """
    if not private_key or not public_key:
        raise ValueError("ImageKit keys are not configured")
    token = token or str(uuid.uuid4())
    expire = int(now if now is not None else time.time()) + int(ttl)
    signature = hmac.new(
        private_key.encode('utf-8'),
        f"{token}{expire}".encode('utf-8'),
        hashlib.sha1,
    ).hexdigest()
    return {
        "token": token,
        "expire": expire,
        "signature": signature,
        "publicKey": public_key,
    }

@uploads_bp.route('', methods=['GET'])
def upload_auth():
    try:
        params = get_authentication_parameters(
            current_app.config['IMAGEKIT_PRIVATE_KEY'],
            current_app.config['IMAGEKIT_PUBLIC_KEY'],
            current_app.config['UPLOAD_AUTH_TTL'],
        )
    except ValueError as e:
        current_app.logger.error(f"Error issuing upload credentials: {e}")
        return "Authentication for ImageKit failed", 500

    return jsonify(params), 200
