import json

import pytest

from errors import InvalidModelOutput, MissingMarkup
from services.llm_response_handler import Bundle, LLMResponseHandler

CANONICAL = {
    "index.html": "<html><body>hi</body></html>",
    "styles.css": "body { color: red; }",
    "script.js": "console.log('hi');",
}


class TestExtractText:

    def test_plain_string_payload_is_used_verbatim(self):
        assert LLMResponseHandler.extract_text("  raw text  ") == "  raw text  "

    @pytest.mark.parametrize("payload", [
        {"choices": [{"text": "EXPECTED"}]},
        {"choices": [{"message": {"content": "EXPECTED"}}]},
        {"output": [{"content": "EXPECTED"}]},
        {"text": "EXPECTED"},
    ])
    def test_known_shapes(self, payload):
        assert LLMResponseHandler.extract_text(payload) == "EXPECTED"

    def test_choice_text_wins_over_message_content(self):
        payload = {"choices": [{"text": "first", "message": {"content": "second"}}]}
        assert LLMResponseHandler.extract_text(payload) == "first"

    def test_empty_choice_text_falls_through_to_message(self):
        payload = {"choices": [{"text": "", "message": {"content": "second"}}], "text": "last"}
        assert LLMResponseHandler.extract_text(payload) == "second"

    def test_only_first_choice_is_considered(self):
        payload = {"choices": [{}, {"text": "ignored"}], "text": "top-level"}
        assert LLMResponseHandler.extract_text(payload) == "top-level"

    def test_unknown_shape_serializes_whole_payload(self):
        payload = {"candidates": [{"parts": ["x"]}], "status": 1}
        text = LLMResponseHandler.extract_text(payload)
        assert json.loads(text) == payload

    @pytest.mark.parametrize("payload", [None, 42, [1, 2], {"choices": "nope"}, {"output": []}])
    def test_odd_payloads_never_raise(self, payload):
        assert isinstance(LLMResponseHandler.extract_text(payload), str)


class TestStripFences:

    @pytest.mark.parametrize("text", [
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '```javascript {"a": 1}```',
        '  {"a": 1}\n```  ',
        '{"a": 1}',
    ])
    def test_fences_removed(self, text):
        assert LLMResponseHandler.strip_fences(text) == '{"a": 1}'

    def test_backticks_after_a_tag_are_not_an_opener(self):
        assert LLMResponseHandler.strip_fences("```a```b```") == "```a```b"

    def test_interior_content_untouched(self):
        inner = '{"index.html": "<pre>```code```</pre>"}'
        assert LLMResponseHandler.strip_fences(f"```json\n{inner}\n```") == inner

    @pytest.mark.parametrize("text", [
        '```json\n{"a": 1}\n```',
        "plain words",
        '```html\n<p>x</p>\n```',
        "```a```b```",
        "```a ```b c```",
    ])
    def test_idempotent(self, text):
        once = LLMResponseHandler.strip_fences(text)
        assert LLMResponseHandler.strip_fences(once) == once


class TestParseObject:

    def test_strict_json(self):
        assert LLMResponseHandler.parse_object('{"a": "b"}') == {"a": "b"}

    def test_object_embedded_in_prose(self):
        text = 'Sure! Here is your site: {"index.html": "<p>x</p>"} Enjoy.'
        assert LLMResponseHandler.parse_object(text) == {"index.html": "<p>x</p>"}

    def test_no_braces_raises_with_preview(self):
        with pytest.raises(InvalidModelOutput) as excinfo:
            LLMResponseHandler.parse_object("I cannot do that.")
        assert excinfo.value.preview == "I cannot do that."
        assert excinfo.value.status_code == 502

    def test_broken_span_raises(self):
        with pytest.raises(InvalidModelOutput):
            LLMResponseHandler.parse_object('prefix {"a": } suffix')

    def test_closing_brace_before_opening_raises(self):
        with pytest.raises(InvalidModelOutput):
            LLMResponseHandler.parse_object("} nothing {")

    def test_non_object_json_is_rejected(self):
        with pytest.raises(InvalidModelOutput):
            LLMResponseHandler.parse_object('["index.html"]')

    def test_preview_is_truncated(self):
        text = "x" * 5000
        with pytest.raises(InvalidModelOutput) as excinfo:
            LLMResponseHandler.parse_object(text)
        assert len(excinfo.value.preview) == 2000
        assert excinfo.value.to_dict()["model_text_preview"] == "x" * 2000


class TestToBundle:

    def test_canonical_keys_reproduced(self):
        bundle = LLMResponseHandler.to_bundle(CANONICAL)
        assert bundle.to_files() == CANONICAL

    def test_alias_keys_resolve_to_same_slots(self):
        aliased = {
            "index": CANONICAL["index.html"],
            "style.css": CANONICAL["styles.css"],
            "app.js": CANONICAL["script.js"],
        }
        assert LLMResponseHandler.to_bundle(aliased) == LLMResponseHandler.to_bundle(CANONICAL)

    def test_short_aliases(self):
        bundle = LLMResponseHandler.to_bundle({"html": "<p/>", "css": "a{}", "js": "x()"})
        assert bundle == Bundle(markup="<p/>", stylesheet="a{}", script="x()")

    def test_alias_priority(self):
        bundle = LLMResponseHandler.to_bundle({"html": "third", "index": "second", "index.html": "first"})
        assert bundle.markup == "first"

    def test_empty_alias_value_falls_through(self):
        bundle = LLMResponseHandler.to_bundle({"index.html": "", "html": "<p>fallback</p>"})
        assert bundle.markup == "<p>fallback</p>"

    def test_stylesheet_and_script_default_to_empty(self):
        bundle = LLMResponseHandler.to_bundle({"index.html": "<p/>"})
        assert bundle.to_files() == {"index.html": "<p/>", "styles.css": "", "script.js": ""}

    def test_missing_markup_carries_keys(self):
        with pytest.raises(MissingMarkup) as excinfo:
            LLMResponseHandler.to_bundle({"page.html": "<p/>", "styles.css": "a{}"})
        assert excinfo.value.keys == ["page.html", "styles.css"]
        assert excinfo.value.to_dict() == {
            "error": "Generated bundle missing index.html",
            "keys": ["page.html", "styles.css"],
        }

    def test_empty_markup_is_missing(self):
        with pytest.raises(MissingMarkup):
            LLMResponseHandler.to_bundle({"index.html": "", "script.js": "x()"})


class TestNormalize:

    def test_fenced_completion_in_choices(self):
        inner = json.dumps(CANONICAL)
        payload = {"choices": [{"text": f"```json\n{inner}\n```"}]}
        assert LLMResponseHandler.normalize(payload).to_files() == CANONICAL

    def test_chat_shape_with_prose(self):
        content = "Here you go:\n" + json.dumps({"html": "<h1>Hi</h1>"}) + "\nThanks"
        payload = {"choices": [{"message": {"content": content}}]}
        bundle = LLMResponseHandler.normalize(payload)
        assert bundle.markup == "<h1>Hi</h1>"
        assert bundle.stylesheet == ""

    def test_unknown_shape_that_is_itself_a_bundle(self):
        # The serialized payload parses, so its keys become the bundle
        bundle = LLMResponseHandler.normalize({"index.html": "<p>direct</p>"})
        assert bundle.markup == "<p>direct</p>"

    def test_unknown_shape_without_markup(self):
        with pytest.raises(MissingMarkup) as excinfo:
            LLMResponseHandler.normalize({"id": "cmpl-1", "usage": {}})
        assert excinfo.value.keys == ["id", "usage"]

    def test_bundle_is_immutable(self):
        bundle = LLMResponseHandler.normalize({"text": '{"index.html": "<p/>"}'})
        with pytest.raises(AttributeError):
            bundle.markup = "changed"
