"""
Chunked upload of screen and webcam captures.

Each stream is recorded in 1 s slices. Once a stream has buffered a full batch
and the session is still active, the batch is uploaded as one chunk and the
buffer cleared. stop() uploads whatever is left as the final recording for
each stream. Upload failures are logged by the client and never interrupt
recording.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Optional, Set

from app.core.constants import RecordingTypeEnum
from app.proctoring.client import ProctoringClient

logger = logging.getLogger(__name__)

TIMESLICE_SECONDS = 1.0
BATCH_SIZE = 10


@dataclass
class RecordingStream:
    recording_type: RecordingTypeEnum
    buffer: List[bytes] = field(default_factory=list)
    chunks_sent: int = 0
    chunk_urls: List[str] = field(default_factory=list)
    final_url: Optional[str] = None


class RecordingPipeline:

    def __init__(
        self,
        client: ProctoringClient,
        session_id: str,
        *,
        batch_size: int = BATCH_SIZE,
        is_active: Optional[Callable[[], bool]] = None,
    ):
        self.client = client
        self.session_id = session_id
        self.batch_size = batch_size
        self._is_active = is_active
        self.streams: Dict[RecordingTypeEnum, RecordingStream] = {}
        self.recording = False
        self._captures: List[asyncio.Task] = []
        self._uploads: Set[asyncio.Task] = set()

    @property
    def session_active(self) -> bool:
        if not self.recording:
            return False
        return self._is_active() if self._is_active else True

    def _stream(self, recording_type: RecordingTypeEnum) -> RecordingStream:
        recording_type = RecordingTypeEnum(recording_type)
        if recording_type not in self.streams:
            self.streams[recording_type] = RecordingStream(recording_type)
        return self.streams[recording_type]

    def start(self, *recording_types: RecordingTypeEnum):
        self.recording = True
        for recording_type in recording_types or (RecordingTypeEnum.SCREEN,):
            self._stream(recording_type)
        logger.info(f"Recording started for session {self.session_id}: {[t.value for t in self.streams]}")

    def capture(self, recording_type: RecordingTypeEnum, source: AsyncIterator[bytes]) -> asyncio.Task:
        """Feed slices from an async source (one item per timeslice) until it ends or stop() is called."""
        if not self.recording:
            self.start(recording_type)
        self._stream(recording_type)
        task = asyncio.create_task(self._consume(recording_type, source))
        self._captures.append(task)
        return task

    async def _consume(self, recording_type: RecordingTypeEnum, source: AsyncIterator[bytes]):
        async for data in source:
            self.add_slice(recording_type, data)

    def add_slice(self, recording_type: RecordingTypeEnum, data: bytes):
        if not data:
            return
        stream = self._stream(recording_type)
        stream.buffer.append(data)

        if len(stream.buffer) >= self.batch_size and self.session_active:
            batch = b"".join(stream.buffer)
            stream.buffer.clear()
            stream.chunks_sent += 1
            self._upload_chunk(stream, batch)

    def _upload_chunk(self, stream: RecordingStream, batch: bytes):
        timestamp = int(time.time() * 1000)

        async def upload():
            url = await self.client.upload_chunk(self.session_id, stream.recording_type.value, batch, timestamp)
            if url:
                stream.chunk_urls.append(url)
                logger.debug(f"{stream.recording_type.value} chunk uploaded: {url}")

        task = asyncio.create_task(upload())
        self._uploads.add(task)
        task.add_done_callback(self._uploads.discard)

    async def drain(self):
        """Wait for in-flight chunk uploads."""
        if self._uploads:
            await asyncio.gather(*list(self._uploads), return_exceptions=True)

    async def stop(self) -> Dict[str, Optional[str]]:
        if not self.recording:
            return {t.value: s.final_url for t, s in self.streams.items()}
        self.recording = False

        captures, self._captures = self._captures, []
        current = asyncio.current_task()
        for task in captures:
            if task is not current:
                task.cancel()
        await asyncio.gather(*[t for t in captures if t is not current], return_exceptions=True)
        await self.drain()

        results = {}
        for recording_type, stream in self.streams.items():
            if stream.buffer:
                blob = b"".join(stream.buffer)
                stream.buffer.clear()
                stream.final_url = await self.client.upload_recording(self.session_id, recording_type.value, blob)
            results[recording_type.value] = stream.final_url

        logger.info(f"Recording stopped for session {self.session_id}: {results}")
        return results
