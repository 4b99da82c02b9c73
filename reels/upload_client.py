"""Client-side upload of images and videos straight to ImageKit.

One ``FileUploader`` handles one attempt at a time::

    idle -> validating -> authenticating -> uploading -> succeeded | failed | aborted

The server never sees the bytes: it only signs short-lived credentials
(``GET /upload-auth``) and later stores the resulting URLs (``POST /videos``).
"""
import enum
import logging
import mimetypes
import os
import threading
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, Optional

import requests
from requests_toolbelt.multipart.encoder import MultipartEncoder, MultipartEncoderMonitor

from .api_client import ApiError

logger = logging.getLogger(__name__)

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"

MIB = 1024 * 1024
MAX_IMAGE_SIZE = 5 * MIB
MAX_VIDEO_SIZE = 100 * MIB
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")

UPLOAD_FOLDERS = {"image": "/images", "video": "/videos"}


class UploadState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AUTHENTICATING = "authenticating"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"


class UploadErrorKind(enum.Enum):
    ABORT = "abort"
    INVALID_REQUEST = "invalid_request"
    NETWORK = "network"
    SERVER = "server"
    UNKNOWN = "unknown"


# Every UploadErrorKind must have an entry here.
ERROR_MESSAGES = {
    UploadErrorKind.ABORT: "{detail}",
    UploadErrorKind.INVALID_REQUEST: "Invalid upload request: {detail}",
    UploadErrorKind.NETWORK: "Network error during upload: {detail}",
    UploadErrorKind.SERVER: "Media server error: {detail}",
    UploadErrorKind.UNKNOWN: "Upload failed: {detail}",
}


class UploadError(Exception):
    def __init__(self, kind, detail):
        self.kind = kind
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self):
        return ERROR_MESSAGES[self.kind].format(detail=self.detail)


class AuthenticationError(Exception):
    """Upload credentials could not be obtained from the server."""


@dataclass
class SelectedFile:
    name: str
    mime_type: str
    size: int
    stream: BinaryIO

    @classmethod
    def from_path(cls, path: str, mime_type: Optional[str] = None) -> "SelectedFile":
        if mime_type is None:
            mime_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        return cls(
            name=os.path.basename(path),
            mime_type=mime_type,
            size=os.path.getsize(path),
            stream=open(path, "rb"),
        )

    def close(self):
        self.stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


@dataclass
class UploadResult:
    url: str
    thumbnail_url: Optional[str] = None
    file_id: Optional[str] = None
    name: Optional[str] = None
    file_path: Optional[str] = None
    size: Optional[int] = None
    height: Optional[int] = None
    width: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "UploadResult":
        return cls(
            url=data["url"],
            thumbnail_url=data.get("thumbnailUrl"),
            file_id=data.get("fileId"),
            name=data.get("name"),
            file_path=data.get("filePath"),
            size=data.get("size"),
            height=data.get("height"),
            width=data.get("width"),
            raw=data,
        )


class AbortSignal:
    def __init__(self):
        self._event = threading.Event()
        self.reason = None

    def abort(self, reason="Upload aborted"):
        self.reason = reason
        self._event.set()

    @property
    def aborted(self):
        return self._event.is_set()

    def raise_if_aborted(self):
        if self.aborted:
            raise UploadError(UploadErrorKind.ABORT, self.reason)


class FileUploader:
    def __init__(
        self,
        api_client,
        file_type="image",
        on_success=None,
        on_progress=None,
        upload_url=IMAGEKIT_UPLOAD_URL,
        session=None,
        timeout=None,
    ):
        if file_type not in UPLOAD_FOLDERS:
            raise ValueError(f"file_type must be 'image' or 'video', got {file_type!r}")
        self.api_client = api_client
        self.file_type = file_type
        self.on_success = on_success
        self.on_progress = on_progress
        self.upload_url = upload_url
        self.session = session or requests.Session()
        self.timeout = timeout

        self.state = UploadState.IDLE
        self.progress = 0.0
        self.error = None
        self.result = None
        self._signal = AbortSignal()

    @property
    def uploading(self):
        return self.state is UploadState.UPLOADING

    def abort(self, reason="Upload aborted"):
        """Cancel the in-flight attempt at its next progress event.

        Called between attempts, it cancels the next one before it starts.
        """
        self._signal.abort(reason)

    def validate(self, file):
        if file is None:
            self.error = "Please select a file to upload"
            return False

        if self.file_type == "video":
            if not file.mime_type.startswith("video/"):
                self.error = "Please upload a valid video file (e.g., MP4, WebM)"
                return False
            if file.size > MAX_VIDEO_SIZE:
                self.error = "Video must be less than 100MB"
                return False
        else:
            if file.mime_type not in ALLOWED_IMAGE_TYPES:
                self.error = "Please upload a valid image file (JPEG, PNG, or WebP)"
                return False
            if file.size > MAX_IMAGE_SIZE:
                self.error = "Image must be less than 5MB"
                return False

        self.error = None
        return True

    def authenticate(self):
        try:
            return self.api_client.get_upload_auth()
        except (ApiError, requests.RequestException, KeyError, ValueError) as e:
            logger.error(f"Authentication error: {e}")
            raise AuthenticationError("Authentication request failed") from e

    def upload(self, file, credentials):
        self._signal.raise_if_aborted()

        encoder = MultipartEncoder(fields={
            "file": (file.name, file.stream, file.mime_type),
            "fileName": file.name,
            "publicKey": credentials["publicKey"],
            "signature": credentials["signature"],
            "expire": str(credentials["expire"]),
            "token": credentials["token"],
            "folder": UPLOAD_FOLDERS[self.file_type],
            "useUniqueFileName": "true",
        })
        monitor = MultipartEncoderMonitor(encoder, self._report_progress)

        try:
            response = self.session.post(
                self.upload_url,
                data=monitor,
                headers={"Content-Type": monitor.content_type},
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise UploadError(UploadErrorKind.NETWORK, str(e)) from e
        except requests.RequestException as e:
            raise UploadError(UploadErrorKind.UNKNOWN, str(e)) from e

        self._signal.raise_if_aborted()

        if 400 <= response.status_code < 500:
            raise UploadError(UploadErrorKind.INVALID_REQUEST, _media_host_message(response))
        if not response.ok:
            raise UploadError(UploadErrorKind.SERVER, _media_host_message(response))

        try:
            return UploadResult.from_response(response.json())
        except (ValueError, KeyError) as e:
            raise UploadError(UploadErrorKind.UNKNOWN, f"Unexpected response from media host: {e}") from e

    def _report_progress(self, monitor):
        self._signal.raise_if_aborted()
        self.progress = monitor.bytes_read / monitor.len if monitor.len else 1.0
        if self.on_progress:
            self.on_progress(self.progress)

    def handle_upload(self, file):
        """Run one full attempt; returns the result, or None with ``error`` set."""
        self.error = None
        self.progress = 0.0
        self.result = None
        try:
            return self._attempt(file)
        finally:
            # The signal lives exactly as long as one attempt
            self._signal = AbortSignal()

    def _attempt(self, file):
        if self._signal.aborted:
            self.error = self._signal.reason
            self.state = UploadState.ABORTED
            return None

        self.state = UploadState.VALIDATING
        if not self.validate(file):
            self.state = UploadState.FAILED
            return None

        self.state = UploadState.AUTHENTICATING
        try:
            credentials = self.authenticate()
        except AuthenticationError as e:
            logger.error(f"Failed to authenticate for upload: {e}")
            self.error = str(e)
            self.state = UploadState.FAILED
            return None

        self.state = UploadState.UPLOADING
        try:
            result = self.upload(file, credentials)
        except UploadError as e:
            logger.error(f"Upload of {file.name} ended with {e.kind.value}: {e.message}")
            self.error = e.message
            self.state = UploadState.ABORTED if e.kind is UploadErrorKind.ABORT else UploadState.FAILED
            return None

        logger.info(f"Uploaded {file.name} to {result.url}")
        self.result = result
        self.state = UploadState.SUCCEEDED
        if self.on_success:
            self.on_success(result)
        return result


def publish_video(api_client, title, description, video, thumbnail=None, controls=None, quality=None):
    """Store a Video record for an upload that already succeeded."""
    thumbnail_url = thumbnail.url if thumbnail is not None else video.thumbnail_url
    payload = {
        "title": title,
        "description": description,
        "videoUrl": video.url,
        "thumbnailUrl": thumbnail_url,
    }
    if controls is not None:
        payload["controls"] = controls
    if quality is not None:
        payload["transformation"] = {"quality": quality}
    return api_client.create_video(payload)


def _media_host_message(response):
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return response.text or f"HTTP {response.status_code}"
