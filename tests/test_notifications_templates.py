"""Tests for digest subject and body rendering."""

import pytest

from concoro.notifications import NotificationTemplateError, TemplateRenderer
from concoro.notifications.payloads import build_digest_context
from tests.helpers import make_digest_item


@pytest.fixture(scope="module")
def renderer():
    return TemplateRenderer()


def render(renderer, *items, user_name="Mario"):
    return renderer.render(build_digest_context(user_name, list(items)))


class TestSubject:
    def test_single_urgent(self, renderer):
        rendered = render(renderer, make_digest_item(0, concorso_title="Agenti di polizia locale"))
        assert rendered["subject"] == "🚨 SCADE OGGI: Agenti di polizia locale"

    def test_several_urgent(self, renderer):
        rendered = render(renderer, make_digest_item(0, "a"), make_digest_item(0, "b"), make_digest_item(7, "c"))
        assert rendered["subject"] == "🚨 2 concorsi scadono OGGI!"

    def test_single_tomorrow(self, renderer):
        rendered = render(renderer, make_digest_item(1, concorso_title="Funzionari tecnici"), make_digest_item(3, "x"))
        assert rendered["subject"] == "⏰ Scade domani: Funzionari tecnici"

    def test_several_tomorrow(self, renderer):
        rendered = render(renderer, make_digest_item(1, "a"), make_digest_item(1, "b"), make_digest_item(1, "c"))
        assert rendered["subject"] == "⏰ 3 concorsi scadono domani"

    def test_single_upcoming(self, renderer):
        rendered = render(renderer, make_digest_item(7, concorso_title="Dirigenti medici"))
        assert rendered["subject"] == "📅 Promemoria: Dirigenti medici (7 giorni)"

    def test_several_upcoming(self, renderer):
        rendered = render(renderer, make_digest_item(7, "a"), make_digest_item(3, "b"))
        assert rendered["subject"] == "📅 2 concorsi in scadenza"

    def test_untitled_concorso(self, renderer):
        rendered = render(renderer, make_digest_item(0, concorso_title=None))
        assert rendered["subject"] == "🚨 SCADE OGGI: Concorso"

    def test_subject_is_single_line(self, renderer):
        rendered = render(renderer, make_digest_item(1, concorso_title="Riga uno\nriga due"))
        assert "\n" not in rendered["subject"]


class TestTextBody:
    def test_layout(self, renderer):
        rendered = render(
            renderer,
            make_digest_item(0, "oggi", concorso_title="Bando A"),
            make_digest_item(3, "dopo", concorso_title="Bando B"),
            user_name="Giulia",
        )
        text = rendered["text_body"]

        assert text.startswith("Ciao Giulia!\n\nHai 2 concorsi in scadenza")
        assert "🚨 SCADONO OGGI:\n- Bando A (Comune di Roma)\n  Scadenza: 7/3/2025\n  Link: https://concoro.it/bandi/oggi" in text
        assert "📅 PROSSIME SCADENZE:\n- Bando B (Comune di Roma)\n  Scade tra 3 giorni\n" in text
        assert "⏰ SCADONO DOMANI" not in text
        assert "Visualizza tutte le notifiche: https://concoro.it/notifiche" in text
        assert "Gestisci le tue preferenze: https://concoro.it/settings" in text

    def test_singular_wording(self, renderer):
        assert "Hai 1 concorso in scadenza" in render(renderer, make_digest_item(1))["text_body"]

    def test_text_is_not_escaped(self, renderer):
        rendered = render(renderer, make_digest_item(1, concorso_title="Tecnici <B> & C."))
        assert "Tecnici <B> & C." in rendered["text_body"]


class TestHtmlBody:
    def test_sections_and_colors(self, renderer):
        html = render(renderer, make_digest_item(0, "a"), make_digest_item(1, "b"), make_digest_item(7, "c"))["html_body"]

        assert "🚨 Scadono OGGI" in html
        assert "⏰ Scadono Domani" in html
        assert "📅 Prossime Scadenze" in html
        assert "#ffebee" in html
        assert "#fff8e1" in html
        assert "#e3f2fd" in html
        assert 'href="https://concoro.it/bandi/c"' in html
        assert "Visualizza Tutte le Notifiche" in html
        assert "© 2024 Concoro. Tutti i diritti riservati." in html

    def test_empty_sections_are_omitted(self, renderer):
        html = render(renderer, make_digest_item(7))["html_body"]

        assert "Scadono OGGI" not in html
        assert "Scadono Domani" not in html
        assert "Scade tra 7 giorni" in html
        assert "Scadenza: 14 marzo 2025" in html

    def test_user_content_is_escaped(self, renderer):
        rendered = render(renderer, make_digest_item(1, concorso_title="<script>x</script> & C."), user_name="<b>Eve</b>")
        html = rendered["html_body"]

        assert "<script>" not in html
        assert "&lt;script&gt;x&lt;/script&gt; &amp; C." in html
        assert "Ciao &lt;b&gt;Eve&lt;/b&gt;!" in html


class TestRenderErrors:
    def test_missing_context_key_raises(self, renderer):
        with pytest.raises(NotificationTemplateError):
            renderer.render({"headline": "urgent"})

    def test_missing_template_raises(self):
        with pytest.raises(NotificationTemplateError):
            TemplateRenderer(subject_template="nope.j2").render({})
