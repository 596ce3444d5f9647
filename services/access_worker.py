"""
FaceGate Access Worker
Drives the door camera loop: one synchronous tick every FRAME_INTERVAL_MS.

Tick order:
    1. Door timer      - AccessController.on_tick (auto-lock)
    2. Frame           - FrameSource.next_frame (empty frame = no recognition this tick)
    3. Recognition     - RecognitionPipeline.process_frame
    4. Decision        - AccessController.on_frame_result (may emit an AccessEvent)
    5. Render          - overlay + render sink

Enrollment and deletion take the same lock as a tick, so they run to
completion between ticks and never overlap a gallery scan.
"""

import logging
import threading
import time
from typing import Callable, Optional

from engines.facial_recognition.errors import CameraUnavailable, RecognitionError
from services.render import draw_overlay

logger = logging.getLogger(__name__)


class AccessWorker:
    """Single-timeline host for recognition, door control and enrollment."""

    def __init__(self, frame_source, pipeline, controller, enrollment,
                 event_log=None, db=None, render_sink=None,
                 frame_interval: float = 0.06,
                 clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], None] = time.sleep):
        self.frame_source = frame_source
        self.pipeline = pipeline
        self.controller = controller
        self.enrollment = enrollment
        self.event_log = event_log
        self.db = db
        self.render_sink = render_sink
        self.frame_interval = frame_interval
        self.clock = clock
        self.sleep = sleep

        self.controller.event_sink = self._on_access_event
        self._lock = threading.RLock()
        self._thread = None
        self.running = False
        self.frame_count = 0
        self.processed_count = 0
        self.camera_available = True
        self.last_frame = None
        self.last_result = None

    # ── Access events ──

    def _on_access_event(self, event):
        if self.event_log is not None:
            self.event_log.append(event)
        if self.db is not None:
            try:
                self.db.record_access_event(event)
            except Exception as e:
                logger.error(f"Failed to persist access event for {event.name}: {e}")
        if self.render_sink is not None:
            try:
                self.render_sink.publish_event(event)
            except Exception as e:
                logger.warning(f"Access event broadcast failed: {e}")

    # ── Tick ──

    def tick(self, now: Optional[float] = None) -> dict:
        """Run one frame tick. Returns the status snapshot for this tick."""
        with self._lock:
            now = self.clock() if now is None else now
            self.controller.on_tick(now)

            try:
                frame = self.frame_source.next_frame()
                if not self.camera_available:
                    logger.info("Camera available again")
                self.camera_available = True
            except CameraUnavailable as e:
                if self.camera_available:
                    logger.error(f"Camera unavailable: {e.message}")
                self.camera_available = False
                frame = None

            result = None
            if frame is not None:
                self.frame_count += 1
                self.last_frame = frame
                result = self.pipeline.process_frame(frame)
                self.controller.on_frame_result(result, now)
                self.processed_count += 1
            self.last_result = result

            snapshot = self._snapshot(now)
            self._render(snapshot, frame, result)
            return snapshot

    def _snapshot(self, now):
        snapshot = self.controller.snapshot(now)
        snapshot['camera_available'] = self.camera_available
        snapshot['recognition_available'] = self.pipeline.available
        if self.last_result is not None:
            snapshot['frame_status'] = self.last_result.status.value
            snapshot['recognized_id'] = self.last_result.recognized_id
            snapshot['recognized_name'] = self.last_result.recognized_name
        return snapshot

    def _render(self, snapshot, frame, result):
        if self.render_sink is None:
            return
        recognized = None
        if result is not None and result.authorized:
            recognized = {'identity_id': result.recognized_id, 'name': result.recognized_name}
        try:
            annotated = draw_overlay(frame, result, snapshot) if frame is not None else None
            self.render_sink.publish(snapshot, recognized, annotated)
        except Exception as e:
            logger.warning(f"Render sink error: {e}")

    def get_status(self) -> dict:
        with self._lock:
            return self._snapshot(self.clock())

    # ── Enrollment (user-triggered, serialized with ticks) ──

    def enroll(self, name, frame=None):
        """Register `name` from `frame`, or from the latest camera frame when omitted."""
        with self._lock:
            if frame is None:
                frame = self.last_frame
            return self.enrollment.register(name, frame)

    def delete_identity(self, name) -> int:
        with self._lock:
            return self.enrollment.delete(name)

    def identities(self) -> dict:
        with self._lock:
            return self.enrollment.gallery.names()

    # ── Loop ──

    def run(self, max_ticks: Optional[int] = None):
        """Tick at `frame_interval` until stop() (or `max_ticks` ticks)."""
        self.running = True
        ticks = 0
        logger.info(f"Access worker started ({self.frame_interval * 1000:.0f} ms/frame)")
        try:
            while self.running and (max_ticks is None or ticks < max_ticks):
                started = self.clock()
                try:
                    self.tick(started)
                except RecognitionError as e:
                    logger.error(f"Tick failed ({e.code}): {e.message}")
                except Exception as e:
                    logger.error(f"Tick error: {e}", exc_info=True)
                ticks += 1

                if ticks % 500 == 0:
                    logger.info(
                        f"Processed {self.processed_count} frames "
                        f"(door: {self.controller.door_state.value}, "
                        f"gallery: {len(self.enrollment.gallery)})"
                    )

                remaining = self.frame_interval - (self.clock() - started)
                if remaining > 0:
                    self.sleep(remaining)
        finally:
            self.running = False
            logger.info("Access worker stopped")

    def start(self):
        """Run the loop in a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.run, name='access-worker', daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0):
        self.running = False
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
