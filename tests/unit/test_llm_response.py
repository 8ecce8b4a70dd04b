"""Unit tests for JSON extraction from LLM responses."""

import pytest
from entities.shared.llm_response import find_first_object_span, parse_llm_json


class TestParseLlmJson:
    def test_bare_object(self) -> None:
        assert parse_llm_json('{"queryType": "a", "confidence": 80}') == {
            "queryType": "a",
            "confidence": 80,
        }

    def test_fenced_block(self) -> None:
        text = 'Here you go:\n```json\n{"queryType": "a"}\n```\nDone.'
        assert parse_llm_json(text) == {"queryType": "a"}

    def test_object_inside_prose(self) -> None:
        text = 'I think {"queryType": "a", "params": {"x": 1}} fits best. {"other": 2}'
        assert parse_llm_json(text) == {"queryType": "a", "params": {"x": 1}}

    def test_braces_inside_strings(self) -> None:
        text = 'Answer: {"reasoning": "uses {braces} and \\"quotes\\"", "queryType": "b"}'
        assert parse_llm_json(text)["queryType"] == "b"

    @pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2, 3]", "{broken"])
    def test_unrecoverable(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_llm_json(text)


class TestFindFirstObjectSpan:
    def test_skips_unbalanced_prefix(self) -> None:
        assert find_first_object_span('{ oops {"a": 1}') == '{"a": 1}'

    def test_none_when_absent(self) -> None:
        assert find_first_object_span("nothing") is None
