import logging
import re
import time
from pathlib import Path
from typing import Optional, Dict, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.exceptions import InvalidRecording, StorageError

logger = logging.getLogger(__name__)

UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def safe_name(part: str) -> str:
    return UNSAFE_NAME_CHARS.sub("_", part).lstrip(".") or "unnamed"


def parse_size_to_bytes(size_str: str) -> int:
    size_str = size_str.upper()
    if size_str.endswith('KB'):
        return int(size_str[:-2]) * 1024
    elif size_str.endswith('MB'):
        return int(size_str[:-2]) * 1024 * 1024
    elif size_str.endswith('GB'):
        return int(size_str[:-2]) * 1024 * 1024 * 1024
    else:
        return int(size_str)


class StorageService:
    """Stores recording blobs in S3 when a bucket is configured, else on local disk.

    An S3 failure falls back to local storage so evidence is kept either way.
    """

    def __init__(self, bucket_name: Optional[str] = None, local_dir: Optional[str] = None, s3_client=None):
        self.bucket_name = bucket_name if bucket_name is not None else settings.S3_BUCKET_NAME
        self.region = settings.AWS_REGION
        self.local_dir = Path(local_dir or settings.LOCAL_RECORDINGS_DIR)
        self.max_size = parse_size_to_bytes(settings.MAX_RECORDING_SIZE)
        self.allowed_types = [t.strip() for t in settings.ALLOWED_RECORDING_TYPES.split(',')]
        self.s3_client = s3_client
        if self.bucket_name and self.s3_client is None:
            self.s3_client = boto3.client('s3', region_name=self.region)

    @property
    def use_s3(self) -> bool:
        return bool(self.bucket_name and self.s3_client)

    def get_storage_info(self) -> Dict[str, Any]:
        if self.use_s3:
            return {"type": "s3", "bucket": self.bucket_name, "region": self.region}
        return {"type": "local", "path": str(self.local_dir)}

    def validate_recording(self, content: bytes, content_type: Optional[str]):
        # Browsers send "video/webm;codecs=vp8"; compare the base type only
        base_type = (content_type or "video/webm").split(";")[0].strip()
        if base_type not in self.allowed_types:
            raise InvalidRecording(
                f"Unsupported recording type: {base_type}. Allowed types: {', '.join(self.allowed_types)}"
            )
        if len(content) > self.max_size:
            raise InvalidRecording(
                f"Recording size ({len(content) / 1024 / 1024:.2f}MB) exceeds maximum allowed size ({settings.MAX_RECORDING_SIZE})"
            )

    def upload_recording(self, content: bytes, session_id: str, recording_type: str, content_type: Optional[str] = None) -> Dict[str, Any]:
        self.validate_recording(content, content_type)
        timestamp = int(time.time() * 1000)
        session_id, recording_type = safe_name(session_id), safe_name(recording_type)

        if self.use_s3:
            try:
                return self._upload_to_s3(content, session_id, recording_type, timestamp, content_type)
            except (ClientError, BotoCoreError) as e:
                logger.warning(f"S3 upload failed for session {session_id}, falling back to local storage: {e}")

        return self._upload_to_local(content, session_id, recording_type, timestamp)

    def _upload_to_s3(self, content: bytes, session_id: str, recording_type: str, timestamp: int, content_type: Optional[str]) -> Dict[str, Any]:
        key = f"recordings/{session_id}/{recording_type}_{timestamp}.webm"
        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=content,
            ContentType=(content_type or 'video/webm'),
            Metadata={
                "sessionId": session_id,
                "recordingType": recording_type,
            }
        )
        logger.info(f"Uploaded recording to S3: {key}")
        return {
            "storage": "s3",
            "file_url": f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}",
            "key": key,
            "size": len(content),
        }

    def _upload_to_local(self, content: bytes, session_id: str, recording_type: str, timestamp: int) -> Dict[str, Any]:
        filename = f"{recording_type}_{session_id}_{timestamp}.webm"
        try:
            self.local_dir.mkdir(parents=True, exist_ok=True)
            (self.local_dir / filename).write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to save recording locally: {e}") from e

        logger.info(f"Saved recording to local storage: {filename}")
        return {
            "storage": "local",
            "file_url": f"{settings.RECORDINGS_BASE_URL.rstrip('/')}/{filename}",
            "key": filename,
            "size": len(content),
        }


storage_service = StorageService()
