from __future__ import annotations

from roomboard import templates
from roomboard.document import Container, Document, Element


def test_countdown_stats_hidden_when_empty() -> None:
    assert templates.countdown_stats(total=0, done=0, remaining=0) == ""


def test_countdown_stats_pluralizes() -> None:
    html = templates.countdown_stats(total=3, done=1, remaining=2)
    assert '<span class="number">2</span> <span class="word">items</span> left.' in html
    assert '<span class="number-done">1</span> completed <span class="word-done">item</span>' in html


def test_countdown_stats_without_done_has_no_clear_link() -> None:
    html = templates.countdown_stats(total=1, done=0, remaining=1)
    assert "countdown-clear" not in html


def test_countdown_item_escapes_content() -> None:
    html = templates.countdown_item({"content": '<b>"hi"</b>', "done": True})
    assert "&lt;b&gt;&quot;hi&quot;&lt;/b&gt;" in html
    assert 'class="countdown done"' in html
    assert " checked" in html


def test_countdown_item_shows_pending_input() -> None:
    html = templates.countdown_item({"content": "old"}, input_value="new")
    assert '<div class="countdown-content">old</div>' in html
    assert 'value="new"' in html


def test_session_header() -> None:
    assert "Room 3" in templates.session_header(total=1, in_room=1, room=3)
    assert "1 session today, 1 here" in templates.session_header(total=1, in_room=1, room=3)
    assert "No room set" in templates.session_header(total=0, in_room=0, room=None)


def test_container_moves_elements_between_parents() -> None:
    first = Container(element_id="a")
    second = Container(element_id="b")
    el = first.append(Element(html="x"))

    second.append(el)

    assert len(first) == 0
    assert el.parent is second
    el.remove()
    assert el.attached is False
    assert len(second) == 0


def test_document_logs_errors_escaped() -> None:
    doc = Document(title="Board", list_container=Container(element_id="list"), stats=Element())
    doc.log_error("Error requesting page <x>")
    html = doc.to_html()
    assert '<ul id="debug"><li>Error requesting page &lt;x&gt;</li></ul>' in html
    assert "<title>Board</title>" in html
