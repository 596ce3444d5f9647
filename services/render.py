"""Render Sink - draws the door overlay and pushes frames/state to browsers via SocketIO"""
import base64
import logging
import time

import cv2

from engines.access_control.rules import STATUS_METADATA

logger = logging.getLogger(__name__)

MATCHED_COLOR = (0, 200, 0)
UNMATCHED_COLOR = (0, 0, 255)


def draw_overlay(frame, frame_result, snapshot):
    """
    Annotate a copy of the frame with face boxes and a door status banner.

    Args:
        frame: BGR frame
        frame_result: FrameResult for this frame, or None
        snapshot: AccessController.snapshot() dict
    """
    annotated = frame.copy()

    if frame_result is not None:
        for face in frame_result.faces:
            bbox = face.candidate.bbox
            color = MATCHED_COLOR if face.matched else UNMATCHED_COLOR
            cv2.rectangle(annotated, (bbox.left, bbox.top), (bbox.right, bbox.bottom), color, 2)
            label = face.match.name if face.matched else 'Unknown'
            cv2.putText(annotated, label, (bbox.left, max(bbox.top - 8, 12)),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)

    meta = STATUS_METADATA.get(snapshot.get('status'), STATUS_METADATA['locked'])
    text = meta['label']
    if snapshot.get('pending_name') and snapshot.get('status') in ('pending', 'open'):
        text = f"{text} - {snapshot['pending_name']}"
    cv2.rectangle(annotated, (0, 0), (annotated.shape[1], 36), meta['color'], -1)
    cv2.putText(annotated, text, (10, 25), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 255, 255), 2)
    return annotated


class SocketIORenderSink:
    """Broadcasts (door state, recognized identity, annotated frame) to /stream clients."""

    def __init__(self, socketio, namespace='/stream', jpeg_quality=80):
        self.socketio = socketio
        self.namespace = namespace
        self.jpeg_quality = jpeg_quality

    def publish(self, snapshot, recognized, frame=None):
        payload = {
            'door': snapshot,
            'recognized': recognized,
            'server_time': time.time() * 1000,
        }
        if frame is not None:
            ok, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
            if ok:
                payload['frame'] = base64.b64encode(buffer.tobytes()).decode('ascii')
            else:
                logger.warning("Frame JPEG encoding failed")
        self.socketio.emit('frame', payload, namespace=self.namespace)

    def publish_event(self, event):
        self.socketio.emit('access_granted', event.to_dict(), namespace=self.namespace)
