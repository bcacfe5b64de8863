"""Tests for the profile-completion webhook."""

from unittest.mock import MagicMock

import pytest
import requests

from concoro.config.models import ProfileWebhookConfig
from concoro.profiles import (
    REASON_INCOMPLETE,
    REASON_NO_DATA,
    REASON_NOT_CONFIGURED,
    ProfileWebhookNotifier,
    field_presence,
    is_profile_complete,
)
from tests.helpers import RUN_AT

URL = "https://hooks.example.com/profile"

COMPLETE_PROFILE = {
    "firstName": "Mario",
    "email": "mario@example.com",
    "preferredCategories": ["Amministrativo"],
    "preferredRegions": ["Lazio"],
    "experience": "3 anni",
    "education": "Laurea",
    "languages": ["Inglese"],
}


@pytest.fixture
def session():
    http = MagicMock()
    http.post.return_value = MagicMock(status_code=200)
    return http


def make_notifier(session, url=URL, **config):
    return ProfileWebhookNotifier(url, ProfileWebhookConfig(**config), session=session, clock=lambda: RUN_AT)


class TestCompleteness:
    def test_complete_with_languages(self):
        assert is_profile_complete(COMPLETE_PROFILE) is True

    def test_skills_can_replace_languages(self):
        profile = {**COMPLETE_PROFILE, "languages": [], "skills": ["Excel"]}
        assert is_profile_complete(profile) is True

    def test_needs_languages_or_skills(self):
        profile = {**COMPLETE_PROFILE, "languages": []}
        assert is_profile_complete(profile) is False

    @pytest.mark.parametrize(
        "missing", ["firstName", "preferredCategories", "preferredRegions", "experience", "education"]
    )
    def test_each_required_field(self, missing):
        profile = {**COMPLETE_PROFILE, missing: ""}
        assert is_profile_complete(profile) is False

    def test_field_presence(self):
        presence = field_presence({"firstName": "Mario", "skills": []})

        assert presence["firstName"] is True
        assert presence["skills"] is False
        assert len(presence) == 7


class TestProfileWebhookNotifier:
    def test_complete_profile_is_posted(self, session):
        result = make_notifier(session, timeout=15).on_profile_written("u1", COMPLETE_PROFILE)

        assert result.success is True
        assert result.status_code == 200
        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args == (URL,)
        assert kwargs["headers"] == {"Content-Type": "application/json"}
        assert kwargs["timeout"] == 15
        body = kwargs["json"]
        assert body["userId"] == "u1"
        assert body["firstName"] == "Mario"
        assert body["preferredRegions"] == ["Lazio"]
        assert body["updatedAt"] == "2025-03-07T08:00:00.000Z"

    def test_deleted_profile(self, session):
        result = make_notifier(session).on_profile_written("u1", None)

        assert result.reason == REASON_NO_DATA
        session.post.assert_not_called()

    def test_incomplete_profile_reports_presence(self, session):
        result = make_notifier(session).on_profile_written("u1", {"firstName": "Mario"})

        assert result.success is False
        assert result.reason == REASON_INCOMPLETE
        assert result.field_presence["firstName"] is True
        assert result.field_presence["education"] is False
        session.post.assert_not_called()

    def test_incompleteness_is_checked_before_configuration(self, session):
        result = make_notifier(session, url=None).on_profile_written("u1", {"firstName": "Mario"})
        assert result.reason == REASON_INCOMPLETE

    @pytest.mark.parametrize("url,enabled", [(None, True), ("", True), (URL, False)])
    def test_not_configured(self, session, url, enabled):
        result = make_notifier(session, url=url, enabled=enabled).on_profile_written("u1", COMPLETE_PROFILE)

        assert result.success is False
        assert result.reason == REASON_NOT_CONFIGURED
        session.post.assert_not_called()

    def test_http_error_is_reported_not_raised(self, session):
        session.post.return_value = MagicMock(status_code=503)

        result = make_notifier(session).on_profile_written("u1", COMPLETE_PROFILE)

        assert result.success is False
        assert result.status_code == 503
        assert result.error == "HTTP error! Status: 503"

    def test_network_error_is_reported_not_raised(self, session):
        session.post.side_effect = requests.exceptions.Timeout("timed out")

        result = make_notifier(session).on_profile_written("u1", COMPLETE_PROFILE)

        assert result.success is False
        assert result.status_code is None
        assert "timed out" in result.error
