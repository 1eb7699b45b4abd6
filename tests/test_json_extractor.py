"""
Tests for pulling JSON out of free-text LLM answers.
"""
from app_safety.json_extractor import extract_json


def test_json_fence_with_leading_prose():
    text = 'Here you go:\n```json\n{"rating": "4.5", "downloads": "100M+"}\n```\nHope this helps!'
    assert extract_json(text) == {"rating": "4.5", "downloads": "100M+"}


def test_plain_fence():
    text = 'Results:\n```\n[{"name": "Spotify"}]\n```'
    assert extract_json(text) == [{"name": "Spotify"}]


def test_bare_json():
    assert extract_json('  {"a": 1}  ') == {"a": 1}
    assert extract_json('[1, 2, 3]') == [1, 2, 3]


def test_object_buried_in_prose():
    text = 'Sure! The analysis is {"reviewSummary": "Good"} and that is all.'
    assert extract_json(text) == {"reviewSummary": "Good"}


def test_array_buried_in_prose():
    text = 'I found these: [{"name": "A"}, {"name": "B"}] — let me know.'
    # braces span "{...}, {...}" which is not valid JSON, so the array wins
    assert extract_json(text) == [{"name": "A"}, {"name": "B"}]


def test_broken_fence_with_no_other_json_is_none():
    text = '```json\n{"a": 1,,}\n```'
    assert extract_json(text) is None


def test_unparsable_fence_falls_back_to_braces():
    text = '```json\nsee below\n```\nThe result is {"a": 1}'
    assert extract_json(text) == {"a": 1}


def test_broken_fence_falls_back_to_brackets():
    # Fence, whole text and braces all fail; the first "[" to the last "]" parses
    text = '```json\n{"a": 1,,}\n```\nCorrected: [{"a": 1}]'
    assert extract_json(text) == [{"a": 1}]


def test_deeply_nested_input_returns_none():
    text = "Result: " + "[" * 100000 + "]" * 100000
    assert extract_json(text) is None


def test_fence_without_json_tag_is_tried_after_json_tag():
    text = '```\nnot json\n```\n```json\n{"ok": true}\n```'
    assert extract_json(text) == {"ok": True}


def test_pure_prose_returns_none():
    assert extract_json("Sorry, I could not find that app on the Play Store.") is None


def test_empty_and_non_string_inputs():
    assert extract_json("") is None
    assert extract_json("   ") is None
    assert extract_json(None) is None


def test_unbalanced_braces_never_raise():
    assert extract_json("} oops {") is None
    assert extract_json("{{{[[[") is None
