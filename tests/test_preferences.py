"""Tests for the preference store."""
from datetime import time

import pytest

from wedding_app.core.error_handlers import ValidationError
from wedding_app.modules.notification.models import NotificationPreference
from wedding_app.modules.notification.services import PreferenceService


class TestGetOrCreate:

    def test_defaults_are_all_on(self, make_user):
        user = make_user()
        pref = PreferenceService.get_or_create(user.user_id)

        for name in NotificationPreference.FLAG_FIELDS:
            assert getattr(pref, name) is True
        assert pref.preferred_time == time(9, 0)

    def test_second_read_does_not_create_another_row(self, make_user):
        user = make_user()
        first = PreferenceService.get_or_create(user.user_id)
        second = PreferenceService.get_or_create(user.user_id)

        assert first is second
        assert NotificationPreference.query.filter_by(user_id=user.user_id).count() == 1

    def test_to_dict(self, make_user):
        user = make_user()
        data = PreferenceService.get_or_create(user.user_id).to_dict()
        assert data['preferred_time'] == '09:00'
        assert data['budget_enabled'] is True


class TestUpdate:

    def test_partial_update_keeps_other_fields(self, make_user):
        user = make_user()
        pref = PreferenceService.update(user.user_id, {'budget_enabled': False, 'dday_enabled': None})

        assert pref.budget_enabled is False
        assert pref.dday_enabled is True
        assert pref.couple_enabled is True

    def test_preferred_time(self, make_user):
        user = make_user()
        pref = PreferenceService.update(user.user_id, {'preferred_time': '20:30'})
        assert pref.preferred_time == time(20, 30)

    def test_unknown_keys_are_ignored(self, make_user):
        user = make_user()
        pref = PreferenceService.update(user.user_id, {'favourite_colour': 'blue'})
        assert pref.to_dict()['push_enabled'] is True

    @pytest.mark.parametrize('changes', [
        {'budget_enabled': 'no'},
        {'push_enabled': 1},
        {'preferred_time': '25:99'},
    ])
    def test_invalid_values(self, make_user, changes):
        user = make_user()
        with pytest.raises(ValidationError) as exc_info:
            PreferenceService.update(user.user_id, changes)
        assert exc_info.value.status_code == 400
        assert set(exc_info.value.details['errors']) == set(changes)
