"""Request payload checks shared by the HTTP handlers.

Kept apart from ``models`` so field defaults and constraints survive a change
of storage adapter.
"""
from .models import VIDEO_DIMENSIONS, normalize_email

REQUIRED_VIDEO_FIELDS = ('title', 'description', 'videoUrl', 'thumbnailUrl')

DEFAULT_QUALITY = 100
QUALITY_RANGE = (1, 100)


class ValidationError(Exception):
    def __init__(self, message, missing=None):
        super().__init__(message)
        self.message = message
        self.missing = missing or []

    def to_dict(self):
        body = {"msg": self.message}
        if self.missing:
            body["missing"] = self.missing
        return body


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def validate_video_payload(data):
    """Check a create-video body and return the column values to persist.

    Raises ``ValidationError`` naming the missing fields when any of
    ``REQUIRED_VIDEO_FIELDS`` is absent or empty. ``controls`` defaults to
    True and ``transformation.quality`` to 100; height and width are always
    the fixed ``VIDEO_DIMENSIONS`` whatever the client sent.
    """
    if not isinstance(data, dict):
        raise ValidationError("Missing required fields in body", missing=list(REQUIRED_VIDEO_FIELDS))

    missing = [field for field in REQUIRED_VIDEO_FIELDS if _is_blank(data.get(field))]
    if missing:
        raise ValidationError("Missing required fields in body", missing=missing)

    for field in REQUIRED_VIDEO_FIELDS:
        if not isinstance(data[field], str):
            raise ValidationError(f"{field} must be a string")

    controls = data.get('controls')
    if controls is None:
        controls = True
    elif not isinstance(controls, bool):
        raise ValidationError("controls must be a boolean")

    transformation = data.get('transformation') or {}
    if not isinstance(transformation, dict):
        raise ValidationError("transformation must be an object")

    quality = transformation.get('quality')
    if quality is None:
        quality = DEFAULT_QUALITY
    # bool is an int subclass
    elif isinstance(quality, bool) or not isinstance(quality, int):
        raise ValidationError("transformation.quality must be an integer")
    elif not QUALITY_RANGE[0] <= quality <= QUALITY_RANGE[1]:
        raise ValidationError("transformation.quality must be between 1 and 100")

    return {
        'title': data['title'],
        'description': data['description'],
        'video_url': data['videoUrl'],
        'thumbnail_url': data['thumbnailUrl'],
        'controls': controls,
        'transformation_height': VIDEO_DIMENSIONS['height'],
        'transformation_width': VIDEO_DIMENSIONS['width'],
        'transformation_quality': quality,
    }


def validate_credentials(data):
    """Return ``(email, password)`` from a register/login body."""
    if not isinstance(data, dict):
        raise ValidationError("Email and password are required")
    email = data.get('email')
    password = data.get('password')
    if _is_blank(email) or not password or not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError("Email and password are required")
    return normalize_email(email), password
