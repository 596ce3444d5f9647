"""
Tests for AccessRules, STATUS_METADATA and the access event log.
"""

import pytest

from engines.access_control.events import AccessEvent, AccessEventLog
from engines.access_control.rules import AccessRules, STATUS_METADATA


class TestStatusMetadata:
    def test_all_statuses_have_metadata(self):
        for status in ['locked', 'pending', 'open', 'degraded']:
            assert status in STATUS_METADATA
            assert 'label' in STATUS_METADATA[status]
            assert len(STATUS_METADATA[status]['color']) == 3

    def test_locked_is_red(self):
        assert STATUS_METADATA['locked']['color'] == (0, 0, 255)


class TestAccessRules:
    def test_defaults(self):
        rules = AccessRules()
        assert rules.confirmation_window == 3.0
        assert rules.open_duration == 3.0
        assert rules.miss_tolerance == 0
        assert rules.extend_on_reconfirm is False

    def test_zero_window_allowed(self):
        assert AccessRules(confirmation_window=0).confirmation_window == 0

    @pytest.mark.parametrize('kwargs', [
        {'confirmation_window': -1.0},
        {'open_duration': 0},
        {'open_duration': -2.0},
        {'miss_tolerance': -1},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            AccessRules(**kwargs)


class TestAccessEventLog:
    def _event(self, ts, identity_id=1):
        return AccessEvent(timestamp=ts, identity_id=identity_id, name=f'person-{identity_id}')

    def test_recent_is_newest_first(self):
        log = AccessEventLog()
        log.append(self._event(100.0, 1))
        log.append(self._event(200.0, 2))
        assert [e.identity_id for e in log.recent()] == [2, 1]

    def test_limit(self):
        log = AccessEventLog()
        for i in range(5):
            log.append(self._event(float(i), i))
        assert [e.identity_id for e in log.recent(limit=2)] == [4, 3]
        assert log.recent(limit=0) == []

    def test_bounded(self):
        log = AccessEventLog(max_events=3)
        for i in range(5):
            log.append(self._event(float(i), i))
        assert len(log) == 3
        assert log.recent()[-1].identity_id == 2

    def test_event_to_dict(self):
        d = AccessEvent(timestamp=1_700_000_000.0, identity_id=7, name='Alice').to_dict()
        assert d['identity_id'] == 7
        assert d['name'] == 'Alice'
        assert isinstance(d['timestamp'], str)
