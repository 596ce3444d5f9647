"""
Tests for the door overlay and the SocketIO render sink.
"""

import base64

import numpy as np
from unittest.mock import MagicMock

from engines.access_control.events import AccessEvent
from engines.facial_recognition.detector import BoundingBox, FaceCandidate
from engines.facial_recognition.matcher import MatchResult
from services.recognition_pipeline import FaceRecognition, FrameResult, FrameStatus
from services.render import SocketIORenderSink, draw_overlay

T = 1_700_000_000.0


def _frame():
    return np.zeros((120, 160, 3), dtype=np.uint8)


class TestDrawOverlay:
    def test_returns_annotated_copy(self):
        frame = _frame()
        annotated = draw_overlay(frame, None, {'status': 'locked'})
        assert annotated.shape == frame.shape
        assert frame.sum() == 0
        # banner drawn in the locked color (BGR red)
        assert tuple(annotated[5, 150]) == (0, 0, 255)

    def test_draws_face_boxes(self):
        result = FrameResult(
            status=FrameStatus.MATCHED,
            faces=[FaceRecognition(
                candidate=FaceCandidate(BoundingBox(40, 50, 100, 110), 0.9),
                match=MatchResult(identity_id=1, name='Alice', distance=0.1),
            )],
            recognized_id=1,
            recognized_name='Alice',
        )
        annotated = draw_overlay(_frame(), result, {'status': 'open', 'pending_name': 'Alice'})
        assert tuple(annotated[110, 70]) == (0, 200, 0)

    def test_unknown_status_falls_back_to_locked(self):
        annotated = draw_overlay(_frame(), None, {})
        assert tuple(annotated[5, 150]) == (0, 0, 255)


class TestSocketIORenderSink:
    def test_publish_with_frame(self):
        socketio = MagicMock()
        sink = SocketIORenderSink(socketio)
        sink.publish({'door_state': 'locked'}, None, _frame())

        event_name, payload = socketio.emit.call_args[0]
        assert event_name == 'frame'
        assert payload['door'] == {'door_state': 'locked'}
        assert payload['recognized'] is None
        assert base64.b64decode(payload['frame'])[:2] == b'\xff\xd8'
        assert socketio.emit.call_args[1]['namespace'] == '/stream'

    def test_publish_without_frame(self):
        socketio = MagicMock()
        SocketIORenderSink(socketio).publish({'door_state': 'open'}, {'identity_id': 1, 'name': 'A'})
        payload = socketio.emit.call_args[0][1]
        assert 'frame' not in payload
        assert payload['recognized']['name'] == 'A'

    def test_publish_event(self):
        socketio = MagicMock()
        SocketIORenderSink(socketio).publish_event(AccessEvent(timestamp=T, identity_id=2, name='Bob'))
        event_name, payload = socketio.emit.call_args[0]
        assert event_name == 'access_granted'
        assert payload['name'] == 'Bob'

