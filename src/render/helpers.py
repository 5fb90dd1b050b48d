"""
Template helpers: 패턴 템플릿에서 호출하는 이름 있는 함수들.

문자열 헬퍼는 문자열이 아닌 입력에 대해 빈 문자열 반환.
"""

import json
import re
from collections.abc import Callable
from typing import Any


def capitalize(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value[:1].upper() + value[1:]


def lowercase(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.lower()


def kebab_case(value: Any) -> str:
    """"dueDate" → "due-date", "Due Date" → "due-date"."""
    if not isinstance(value, str):
        return ""
    result = re.sub(r"([a-z])([A-Z])", r"\1-\2", value)
    result = re.sub(r"\s+", "-", result)
    return result.lower()


def camel_case(value: Any) -> str:
    """"Due date" → "dueDate" (첫 글자만 소문자, 단어 시작은 대문자)."""
    if not isinstance(value, str):
        return ""

    def _replace(match: re.Match) -> str:
        letter = match.group(0)
        return letter.lower() if match.start() == 0 else letter.upper()

    result = re.sub(r"^\w|[A-Z]|\b\w", _replace, value)
    return re.sub(r"\s+", "", result)


def pluralize(value: Any) -> str:
    """
    단순 복수형.

    - s로 끝나면 그대로
    - y로 끝나면 y → ies
    - 그 외 + s
    """
    if not isinstance(value, str):
        return ""
    if value.endswith("s"):
        return value
    if value.endswith("y"):
        return value[:-1] + "ies"
    return value + "s"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def eq(left: Any, right: Any) -> bool:
    """엄격 비교: 타입과 값이 모두 같아야 True (숫자는 int/float 구분 없음)."""
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def to_json(value: Any) -> str:
    """
    JSON pretty-print (indent=2).

    </ 는 <\\/ 로 출력: <script> 블록 안에 그대로 넣을 수 있음.
    """
    text = json.dumps(value, indent=2, ensure_ascii=False)
    return text.replace("</", "<\\/")


_INPUT_TYPES = {
    "number": "number",
    "date": "date",
    "boolean": "checkbox",
    "email": "email",
}


def input_type(value: Any) -> str:
    """property type → HTML input type."""
    return _INPUT_TYPES.get(value, "text") if isinstance(value, str) else "text"


HELPERS: dict[str, Callable[..., Any]] = {
    "capitalize": capitalize,
    "lowercase": lowercase,
    "kebabCase": kebab_case,
    "camelCase": camel_case,
    "pluralize": pluralize,
    "eq": eq,
    "json": to_json,
    "inputType": input_type,
}
