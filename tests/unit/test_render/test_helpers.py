"""
test_helpers.py - 템플릿 헬퍼 테스트
"""

import pytest

from src.render.helpers import (
    HELPERS,
    camel_case,
    capitalize,
    eq,
    input_type,
    kebab_case,
    lowercase,
    pluralize,
    to_json,
)


class TestStringHelpers:
    """문자열 헬퍼 테스트."""

    def test_capitalize(self):
        """첫 글자만 대문자."""
        assert capitalize("dueDate") == "DueDate"
        assert capitalize("") == ""
        assert capitalize(None) == ""

    def test_lowercase(self):
        assert lowercase("Task List") == "task list"

    def test_kebab_case(self):
        """camelCase / 공백 → kebab-case."""
        assert kebab_case("dueDate") == "due-date"
        assert kebab_case("Due Date") == "due-date"

    def test_camel_case(self):
        """단어 경계 대문자, 첫 글자 소문자."""
        assert camel_case("Due date") == "dueDate"
        assert camel_case("task list item") == "taskListItem"

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("Task", "Tasks"),
            ("Category", "Categories"),
            ("Notes", "Notes"),
            ("", "s"),
        ],
    )
    def test_pluralize(self, word, expected):
        """naive 복수형: +s, y → ies, s 로 끝나면 그대로."""
        assert pluralize(word) == expected


class TestEq:
    """eq 헬퍼 테스트."""

    def test_strict(self):
        """타입이 다르면 False."""
        assert eq("1", 1) is False
        assert eq(True, 1) is False
        assert eq("list", "list") is True

    def test_numbers(self):
        """int / float 는 값 비교."""
        assert eq(1, 1.0) is True


class TestToJson:
    """json 헬퍼 테스트."""

    def test_pretty_print(self):
        """indent=2, 비 ASCII 유지."""
        assert to_json({"name": "할 일"}) == '{\n  "name": "할 일"\n}'

    def test_script_safe(self):
        """</ 는 <\\/ 로."""
        assert "</" not in to_json("</script>")


class TestInputType:
    """inputType 헬퍼 테스트."""

    def test_mapping(self):
        assert input_type("number") == "number"
        assert input_type("date") == "date"
        assert input_type("boolean") == "checkbox"
        assert input_type("email") == "email"
        assert input_type("string") == "text"
        assert input_type(None) == "text"


class TestRegistry:
    """HELPERS 등록 이름."""

    def test_names(self):
        assert set(HELPERS) == {
            "capitalize",
            "lowercase",
            "kebabCase",
            "camelCase",
            "pluralize",
            "eq",
            "json",
            "inputType",
        }
