import pytest

from amaal_calendar.sections import (build_bullet_tree, normalize_sections, render_text,
                                     section_icon)


def test_bullet_tree_nesting():
    tree = build_bullet_tree([
        {"level": 1, "text": "a"},
        {"level": 2, "text": "a.1"},
        {"level": 3, "text": "a.1.x"},
        {"level": 2, "text": "a.2"},
        {"level": 1, "text": "b"},
    ])
    assert [n.text for n in tree] == ["a", "b"]
    assert [n.text for n in tree[0].children] == ["a.1", "a.2"]
    assert tree[0].children[0].children[0].text == "a.1.x"
    assert tree[1].children == []


def test_bullet_tree_drops_blanks_and_clamps_levels():
    tree = build_bullet_tree([
        {"level": 0, "text": "top"},
        {"level": 2, "text": "   "},
        None,
        {"text": "no level"},
        {"level": 3, "text": "skips ahead"},
    ])
    assert [n.text for n in tree] == ["top", "no level"]
    assert [n.level for n in tree] == [1, 1]
    assert tree[1].children[0].text == "skips ahead"


def test_bullet_tree_empty():
    assert build_bullet_tree(None) == []
    assert build_bullet_tree([]) == []


def test_flat_sections_pair_headings_with_bodies():
    secs = normalize_sections({
        "intro_bullets": [{"level": 1, "text": "first"}],
        "prayers_heading": "**Prayers**",
        "prayers_bullets": [{"level": 1, "text": "two units"}],
        "dhikr_heading": "Dhikr",
        "dhikr_lines": ["subhan allah", ""],
        "empty_heading": "Nothing here",
        "context_lines": ["background"],
    })
    assert [(s.key, s.heading) for s in secs] == [
        ("prayers", "Prayers"), ("dhikr", "Dhikr"), ("intro", None), ("context", None)]
    assert secs[1].lines == ["subhan allah"]
    assert secs[0].icon == "🕌"


def test_context_amaal_shape():
    secs = normalize_sections({
        "amaal": [{"level": 1, "text": "ghusl"}],
        "context": "The night of the fifteenth.",
        "ignored": ["x"],
    }, shape="context_amaal")
    assert [s.key for s in secs] == ["context", "amaal"]
    assert secs[0].lines == ["The night of the fifteenth."]
    assert secs[1].bullets[0].text == "ghusl"


def test_unknown_shape():
    with pytest.raises(ValueError):
        normalize_sections({"a_lines": ["x"]}, shape="tree")


def test_section_icon():
    assert section_icon("Supplications_extra") == "🤲"
    assert section_icon("misc") == "•"


def test_render_text():
    text = render_text({"general_heading": "General",
                        "general_bullets": [{"level": 1, "text": "a"}, {"level": 2, "text": "b"}]})
    assert text.splitlines() == ["📋 GENERAL", "● a", "  ○ b"]
    assert render_text(None, "fallback") == "fallback"
