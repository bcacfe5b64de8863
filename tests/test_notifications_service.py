"""Unit tests for the digest service.

Covers recipient resolution, selection of actionable notifications, the
cooldown window, Brevo payload assembly and the email log entry.
"""

import logging
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from concoro.config.models import EmailConfig, NotificationsConfig
from concoro.domain.models import EmailLogEntry
from concoro.notifications import (
    REASON_NOT_CONFIGURED,
    BrevoDeliveryError,
    DeliveryResult,
    DigestService,
)
from tests.helpers import (
    RUN_AT,
    email_log_of,
    make_concorso,
    make_notification,
    make_profile,
    notifications_of,
    seed,
)


@pytest.fixture
def brevo():
    client = MagicMock()
    client.send_transactional.return_value = DeliveryResult(success=True, message_id="msg-1")
    return client


@pytest.fixture
def service(database, brevo):
    return DigestService(brevo, clock=lambda: RUN_AT)


def sent_payload(brevo):
    brevo.send_transactional.assert_called_once()
    return brevo.send_transactional.call_args.args[0]


class TestRecipient:
    def test_missing_profile_is_skipped(self, service, brevo, caplog):
        seed(make_notification())

        with caplog.at_level(logging.WARNING):
            assert service.send_digest("u1") is False

        brevo.send_transactional.assert_not_called()
        assert any(getattr(r, "reason", None) == "profile_missing" for r in caplog.records)

    @pytest.mark.parametrize("email", [None, "", "not-an-address"])
    def test_missing_or_invalid_email_is_skipped(self, service, brevo, email):
        seed(make_profile(email=email), make_concorso(), make_notification())

        assert service.send_digest("u1") is False
        brevo.send_transactional.assert_not_called()

    def test_first_name_fallback(self, service, brevo):
        seed(make_profile(first_name=None), make_concorso(), make_notification())

        assert service.send_digest("u1") is True
        assert sent_payload(brevo)["to"] == [{"email": "mario@example.com", "name": "Utente"}]


class TestSelection:
    def test_nothing_actionable_means_no_call(self, service, brevo):
        seed(
            make_profile(),
            make_concorso(),
            make_notification(days_left=5),
            make_notification(concorso_id="c2", days_left=1, is_read=True),
        )

        assert service.send_digest("u1") is False
        brevo.send_transactional.assert_not_called()
        assert email_log_of("u1") is None

    def test_notifications_of_deleted_concorsi_are_dropped(self, service, brevo):
        seed(
            make_profile(),
            make_concorso("c1", titolo="Bando presente"),
            make_notification(concorso_id="c1", days_left=1),
            make_notification(concorso_id="gone", days_left=0),
        )

        assert service.send_digest("u1") is True
        payload = sent_payload(brevo)
        assert payload["params"]["NOTIFICATION_COUNT"] == 1
        assert payload["params"]["URGENT_COUNT"] == 0
        assert payload["subject"] == "⏰ Scade domani: Bando presente"

    def test_only_deleted_concorsi_means_no_call(self, service, brevo):
        seed(make_profile(), make_notification(concorso_id="gone"))

        assert service.send_digest("u1") is False
        brevo.send_transactional.assert_not_called()

    def test_digest_limit(self, database, brevo):
        seed(make_profile(), *[make_concorso(f"c{i}") for i in range(4)])
        seed(*[make_notification(concorso_id=f"c{i}", timestamp=RUN_AT - timedelta(minutes=i)) for i in range(4)])
        service = DigestService(brevo, NotificationsConfig(digest_limit=2), clock=lambda: RUN_AT)

        assert service.send_digest("u1") is True
        assert sent_payload(brevo)["params"]["NOTIFICATION_COUNT"] == 2

    def test_short_title_is_used_when_full_title_missing(self, service, brevo):
        seed(make_profile(), make_concorso(titolo=None, titolo_breve="Breve"), make_notification(days_left=0))

        service.send_digest("u1")

        assert sent_payload(brevo)["subject"] == "🚨 SCADE OGGI: Breve"


class TestCooldown:
    def test_recent_digest_blocks_a_new_one(self, service, brevo):
        seed(
            make_profile(),
            make_concorso(),
            make_notification(),
            EmailLogEntry(user_id="u1", sent_at=RUN_AT - timedelta(hours=2)),
        )

        assert service.send_digest("u1") is False
        brevo.send_transactional.assert_not_called()

    def test_old_digest_does_not_block(self, service, brevo):
        seed(
            make_profile(),
            make_concorso(),
            make_notification(),
            EmailLogEntry(user_id="u1", sent_at=RUN_AT - timedelta(hours=7)),
        )

        assert service.send_digest("u1") is True
        assert email_log_of("u1").sent_at == RUN_AT

    def test_other_email_types_are_ignored(self, service, brevo):
        seed(
            make_profile(),
            make_concorso(),
            make_notification(),
            EmailLogEntry(user_id="u1", type="welcome", sent_at=RUN_AT - timedelta(minutes=5)),
        )

        assert service.send_digest("u1") is True

    def test_second_send_in_same_run_is_blocked(self, service, brevo):
        seed(make_profile(), make_concorso(), make_notification())

        assert service.send_digest("u1") is True
        assert service.send_digest("u1") is False
        assert brevo.send_transactional.call_count == 1


class TestDelivery:
    def test_payload(self, database, brevo):
        seed(
            make_profile(first_name="Giulia", email="Giulia@Example.com"),
            make_concorso("c1"),
            make_concorso("c2"),
            make_notification(concorso_id="c1", days_left=0),
            make_notification(concorso_id="c2", days_left=1),
        )
        email_config = EmailConfig(sender_email="avvisi@concoro.it", sender_name="Concoro")
        service = DigestService(brevo, email_config=email_config, clock=lambda: RUN_AT)

        assert service.send_digest("u1") is True
        payload = sent_payload(brevo)

        assert payload["to"] == [{"email": "Giulia@example.com", "name": "Giulia"}]
        assert payload["sender"] == {"email": "avvisi@concoro.it", "name": "Concoro"}
        assert payload["params"] == {
            "USER_NAME": "Giulia",
            "NOTIFICATION_COUNT": 2,
            "URGENT_COUNT": 1,
            "SOON_COUNT": 1,
        }
        assert payload["tags"] == ["notification", "concorso", "high"]
        assert "Ciao Giulia!" in payload["htmlContent"]
        assert "Ciao Giulia!" in payload["textContent"]

    def test_normal_priority_tag(self, service, brevo):
        seed(make_profile(), make_concorso(), make_notification(days_left=7))

        service.send_digest("u1")

        assert sent_payload(brevo)["tags"][-1] == "normal"

    def test_success_writes_email_log(self, service, brevo):
        seed(
            make_profile(),
            make_concorso("c1"),
            make_concorso("c2"),
            make_notification(concorso_id="c1", days_left=0),
            make_notification(concorso_id="c2", days_left=3),
        )

        assert service.send_digest("u1") is True

        entry = email_log_of("u1")
        assert entry.type == "notification"
        assert entry.sent_at == RUN_AT
        assert entry.notification_count == 2
        assert entry.urgent_count == 1

    def test_unconfigured_brevo_writes_no_log(self, service, brevo):
        brevo.send_transactional.return_value = DeliveryResult(success=False, reason=REASON_NOT_CONFIGURED)
        seed(make_profile(), make_concorso(), make_notification())

        assert service.send_digest("u1") is False
        assert email_log_of("u1") is None

    def test_delivery_error_propagates_without_log(self, service, brevo):
        brevo.send_transactional.side_effect = BrevoDeliveryError("Brevo API Error: 500", status_code=500)
        seed(make_profile(), make_concorso(), make_notification())

        with pytest.raises(BrevoDeliveryError):
            service.send_digest("u1")

        assert email_log_of("u1") is None

    def test_sending_does_not_mark_notifications_read(self, service, brevo):
        seed(make_profile(), make_concorso(), make_notification())

        service.send_digest("u1")

        assert [n.is_read for n in notifications_of("u1")] == [False]
