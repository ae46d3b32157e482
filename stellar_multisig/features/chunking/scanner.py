"""Camera scanner feeding multi-part QR frames into a chunk assembler."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

from stellar_multisig.features.chunking.codec import (
    ChunkAssembler,
    MergeResult,
    PayloadKind,
    QRChunk,
    decode,
)
from stellar_multisig.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ScannedFrame:
    chunk: QRChunk | None = None
    raw_data: str | None = None
    error: str | None = None


class QRScanner:
    def __init__(self, expected_kind: PayloadKind | None = None):
        self._running = False
        self._capture = None
        self._thread: threading.Thread | None = None
        self.assembler = ChunkAssembler(expected_kind)
        self._on_progress_callback: Callable[[MergeResult], None] | None = None
        self._on_complete_callback: Callable[[MergeResult], None] | None = None
        self._on_error_callback: Callable[[str], None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def is_camera_available(self) -> bool:
        try:
            import cv2

            capture = cv2.VideoCapture(0)
            available = capture.isOpened()
            capture.release()
            return available
        except Exception as e:
            logger.warning(f"Camera check failed: {e}")
            return False

    def start_scanning(
        self,
        on_complete: Callable[[MergeResult], None],
        on_progress: Callable[[MergeResult], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> bool:
        if self._running:
            logger.warning("Scanner already running")
            return False

        self._on_complete_callback = on_complete
        self._on_progress_callback = on_progress
        self._on_error_callback = on_error
        self._running = True

        self._thread = threading.Thread(target=self._scan_loop, daemon=True)
        self._thread.start()
        return True

    def stop_scanning(self) -> None:
        self._running = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
            self._thread = None

    def _report_error(self, message: str) -> None:
        logger.error(message)
        if self._on_error_callback:
            self._on_error_callback(message)

    def handle_frame(self, data: str) -> MergeResult | None:
        """Feed one decoded QR string; fires callbacks and returns the merge state."""
        frame = self.parse_frame(data)
        if frame.chunk is None:
            logger.debug("Ignoring QR frame: %s", frame.error)
            return None

        result = self.assembler.add_chunk(frame.chunk)
        if result is None:
            return None

        if self._on_progress_callback:
            self._on_progress_callback(result)
        if result.complete:
            if self._on_complete_callback:
                self._on_complete_callback(result)
            self._running = False
        return result

    def _scan_loop(self) -> None:
        try:
            import cv2
            from pyzbar import pyzbar
        except ImportError as e:
            self._report_error(f"Required libraries not installed: {e}")
            self._running = False
            return

        try:
            self._capture = cv2.VideoCapture(0)
            if not self._capture.isOpened():
                self._report_error("Could not open camera")
                return

            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, 640)
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, 480)

            while self._running:
                ret, frame = self._capture.read()
                if not ret:
                    continue

                for barcode in pyzbar.decode(frame):
                    if barcode.type != "QRCODE":
                        continue
                    self.handle_frame(barcode.data.decode("utf-8", errors="ignore"))
                    if not self._running:
                        break

        except Exception as e:
            logger.error(f"Scanning error: {e}", exc_info=True)
            if self._on_error_callback:
                self._on_error_callback(f"Scanning error: {e}")
        finally:
            if self._capture is not None:
                self._capture.release()
                self._capture = None
            self._running = False

    @staticmethod
    def parse_frame(data: str) -> ScannedFrame:
        if not data:
            return ScannedFrame(error="Empty QR data")

        chunk = decode(data)
        if chunk is None:
            return ScannedFrame(raw_data=data, error="Not a multisig chunk")

        return ScannedFrame(chunk=chunk, raw_data=data)
