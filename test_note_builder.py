from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.core.activitypub.note_builder import (
    build_note,
    format_published,
    parse_published,
    sanitize_content,
    strip_html,
)
from app.core.activitypub.validator import parse_note
from test_config import ACTOR_URL, make_note

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _build(**overrides):
    return build_note(parse_note(make_note("https://x/notes/1", **overrides)), now=NOW)


def test_script_tag_and_its_contents_are_removed():
    assert sanitize_content("<script>evil()</script><p>hi</p>") == "<p>hi</p>"


def test_style_contents_are_removed():
    assert sanitize_content("<style>p { color: red }</style><p>hi</p>") == "<p>hi</p>"


def test_disallowed_tags_are_unwrapped():
    content = '<p><span class="h-card"><a href="https://x/@bob" class="u-url mention">@<span>bob</span></a></span> hi<img src="x" onerror="alert(1)"></p>'
    assert sanitize_content(content) == '<p><a href="https://x/@bob">@bob</a> hi</p>'


def test_whitelisted_formatting_is_kept():
    content = "<p><strong>bold</strong> <em>em</em><br><code>x</code></p><ul><li>one</li></ul>"
    assert sanitize_content(content) == "<p><strong>bold</strong> <em>em</em><br><code>x</code></p><ul><li>one</li></ul>"


def test_dangerous_link_protocol_is_dropped():
    assert sanitize_content('<a href="javascript:alert(1)">x</a>') == "<a>x</a>"


def test_text_is_escaped_without_double_escaping():
    assert sanitize_content("1 < 2 & 3") == "1 &lt; 2 &amp; 3"
    assert sanitize_content("Tom &amp; Jerry") == "Tom &amp; Jerry"


def test_long_content_is_truncated_with_marker():
    sanitized = sanitize_content("a" * 10050)
    assert len(sanitized) == 10003
    assert sanitized == "a" * 10000 + "..."


def test_content_at_limit_is_not_truncated():
    assert sanitize_content("a" * 10000) == "a" * 10000


def test_empty_content():
    assert sanitize_content("") == ""


def test_strip_html_leaves_plain_text():
    assert strip_html("<p>Hello from <b>Alice</b></p>") == "Hello from Alice"
    assert strip_html(None) == ""


def test_published_is_formatted_in_display_timezone():
    published_at = parse_published("2024-01-01T00:00:00Z")
    assert published_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert format_published(published_at) == "2024年01月01日 09:00"


def test_missing_or_invalid_published_uses_current_time():
    assert parse_published(None, NOW) == NOW
    assert parse_published("yesterday", NOW) == NOW


def test_naive_published_is_treated_as_utc():
    assert parse_published("2024-01-01T00:00:00", NOW).tzinfo is not None


def test_build_note_fields():
    note = _build(content="<p>hi</p><script>x()</script>")
    assert note.id == "https://x/notes/1"
    assert note.content == "<p>hi</p><script>x()</script>"
    assert note.sanitized_content == "<p>hi</p>"
    assert note.formatted_date == "2024年01月01日 09:00"
    assert note.url == "https://x/@alice/1"


def test_build_note_without_published_uses_given_time():
    note = build_note(parse_note({"type": "Note", "id": "n1", "content": "hi"}), now=NOW)
    assert note.published_at == NOW
    assert note.formatted_date == "2024年06月01日 21:00"


def test_attachments_are_normalized():
    note = _build(attachment=[
        {"type": "Image", "url": "https://x/media/1.png", "name": "a cat", "width": 640, "height": 480},
        {"type": "Document", "url": "https://x/media/2.mp4"},
        {"type": "Image", "name": "no url"},
        {"url": "https://x/media/3.png"},
    ])
    assert [attachment.to_dict() for attachment in note.attachments] == [
        {"type": "image", "url": "https://x/media/1.png", "alt_text": "a cat", "width": 640, "height": 480},
        {"type": "document", "url": "https://x/media/2.mp4", "alt_text": ""},
    ]


def test_image_without_dimensions_carries_none():
    note = _build(attachment=[{"type": "Image", "url": "https://x/media/1.png"}])
    assert note.attachments[0].to_dict() == {
        "type": "image", "url": "https://x/media/1.png", "alt_text": "", "width": None, "height": None,
    }


def test_author_from_url():
    note = _build()
    assert note.author.to_dict() == {"id": ACTOR_URL, "name": "Unknown User", "avatar": None}


def test_author_from_object():
    note = _build(attributedTo={"id": ACTOR_URL, "preferredUsername": "alice", "icon": {"url": "https://x/a.png"}})
    assert note.author.to_dict() == {"id": ACTOR_URL, "name": "alice", "avatar": "https://x/a.png"}

    note = _build(attributedTo={"id": ACTOR_URL})
    assert note.author.to_dict() == {"id": ACTOR_URL, "name": "Unknown User", "avatar": None}


def test_missing_author_is_empty_record():
    note = build_note(parse_note({"type": "Note", "id": "n1", "content": "hi"}), now=NOW)
    assert note.author is None
    assert note.to_dict()["author"] == {}


def test_build_is_deterministic():
    candidate = parse_note(make_note(
        "https://x/notes/1",
        content="<p>hi <b>there</b></p>",
        attachment=[{"type": "Image", "url": "https://x/1.png"}],
    ))
    first = build_note(candidate, now=NOW)
    second = build_note(candidate, now=NOW)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_note_is_immutable():
    note = _build()
    with pytest.raises(ValidationError):
        note.id = "other"


def test_to_dict_uses_sanitized_content():
    data = _build(content="<p>hi</p><script>x()</script>").to_dict()
    assert data["content"] == "<p>hi</p>"
    assert data["published_at"] == "2024-01-01T00:00:00+00:00"


def test_truncation_does_not_split_a_tag():
    sanitized = sanitize_content("a" * 9990 + '<a href="https://x/long">link</a>')
    assert sanitized == "a" * 9990 + "..."


def test_truncation_does_not_split_an_entity():
    sanitized = sanitize_content("a" * 9998 + "& b")
    assert sanitized == "a" * 9998 + "..."


def test_truncation_keeps_complete_tags():
    sanitized = sanitize_content("<p>" + "a" * 10050 + "</p>")
    assert sanitized == "<p>" + "a" * 9997 + "..."
