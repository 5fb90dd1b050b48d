"""
Logic template 엔진: 패턴 템플릿 렌더링.

Handlebars 호환 부분집합. 패턴 라이브러리가 실제로 쓰는 기능만 지원:
- {{path}}             HTML escape 후 출력
- {{{path}}}           raw 출력
- {{helper a b}}       헬퍼 호출, (helper a b) subexpression
- {{#if}} {{#unless}} {{#each}} {{#with}} + {{else}}, {{else if ...}} 체인
- {{! comment }}, {{!-- comment --}}
- 경로: a.b.c, this, this.x, ../x, @index, @first, @last, @key, @root

규칙:
- 컨텍스트는 each/with 에서만 push → ../ 는 한 단계 위 스코프
- 이름 조회는 현재 스코프만 (부모로 암묵적 fallback 없음)
- 단독 라인의 블록 태그/주석은 라인째 제거 (standalone)
- 모든 실패는 TemplateRenderError
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from src.domain.errors import ErrorCodes, TemplateRenderError
from src.render.helpers import HELPERS

_TAG_RE = re.compile(
    r"\{\{!--.*?--\}\}"
    r"|\{\{!.*?\}\}"
    r"|\{\{\{\s*(?P<raw>.*?)\s*\}\}\}"
    r"|\{\{\s*(?P<expr>.*?)\s*\}\}",
    re.DOTALL,
)
_ARG_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'|\(|\)|[^\s()]+')
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_LINE_START_RE = re.compile(r"(?:^|\n)[ \t]*\Z")
_LINE_END_RE = re.compile(r"[ \t]*(?:\r?\n|\Z)")

_BLOCK_HELPERS = ("if", "unless", "each", "with")
_STANDALONE_KINDS = ("open", "close", "else", "comment")
_LITERALS = {"true": True, "false": False, "null": None, "undefined": None}

_ESCAPE_TABLE = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "`": "&#x60;",
    "=": "&#x3D;",
})


def escape_html(text: str) -> str:
    """{{expr}} 출력용 HTML escape."""
    return text.translate(_ESCAPE_TABLE)


# =============================================================================
# AST
# =============================================================================

@dataclass
class _Token:
    kind: str  # text, comment, raw, mustache, open, close, else
    value: str
    line: int = 0
    standalone: bool = False


@dataclass(frozen=True)
class _Path:
    parts: tuple[str, ...]
    depth: int = 0
    data: bool = False


@dataclass(frozen=True)
class _Literal:
    value: Any


@dataclass(frozen=True)
class _Call:
    name: str
    args: tuple


@dataclass(frozen=True)
class _Text:
    text: str


@dataclass(frozen=True)
class _Output:
    expr: Any
    escape: bool


@dataclass(frozen=True)
class _Block:
    name: str
    param: Any
    program: tuple
    inverse: tuple | None
    line: int


def _syntax_error(message: str, line: int) -> TemplateRenderError:
    return TemplateRenderError(ErrorCodes.TEMPLATE_SYNTAX_ERROR, message=message, line=line)


# =============================================================================
# Tokenizer
# =============================================================================

def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0

    for match in _TAG_RE.finditer(source):
        if match.start() > pos:
            tokens.append(_Token("text", source[pos:match.start()]))

        line = source.count("\n", 0, match.start()) + 1
        raw = match.group("raw")
        expr = match.group("expr")

        if raw is not None:
            tokens.append(_Token("raw", raw, line))
        elif expr is None:
            tokens.append(_Token("comment", "", line))
        elif expr.startswith("#"):
            tokens.append(_Token("open", expr[1:].strip(), line))
        elif expr.startswith("/"):
            tokens.append(_Token("close", expr[1:].strip(), line))
        elif expr == "else" or expr.startswith(("else ", "else\n", "else\t")):
            tokens.append(_Token("else", expr[4:].strip(), line))
        else:
            tokens.append(_Token("mustache", expr, line))

        pos = match.end()

    if pos < len(source):
        tokens.append(_Token("text", source[pos:]))

    _strip_standalone(tokens)
    return tokens


def _strip_standalone(tokens: list[_Token]) -> None:
    """블록 태그/주석만 있는 라인의 앞 공백과 줄바꿈 제거."""
    last = len(tokens) - 1

    for i, token in enumerate(tokens):
        if token.kind not in _STANDALONE_KINDS:
            continue

        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i < last else None
        if (prev is not None and prev.kind != "text") or (nxt is not None and nxt.kind != "text"):
            continue

        before = prev.value if prev else ""
        after = nxt.value if nxt else ""

        m_before = _LINE_START_RE.search(before)
        if m_before is None:
            continue
        # 줄바꿈 없는 텍스트는 템플릿 시작이거나 직전 태그가 standalone일 때만 라인 시작
        if "\n" not in m_before.group(0) and i >= 2 and not tokens[i - 2].standalone:
            continue

        m_after = _LINE_END_RE.match(after)
        if m_after is None:
            continue
        if not m_after.group(0).endswith("\n") and nxt is not None and i + 1 < last:
            continue

        cut = m_before.start() + (1 if m_before.group(0).startswith("\n") else 0)
        if prev is not None:
            prev.value = before[:cut]
        if nxt is not None:
            nxt.value = after[m_after.end():]
        token.standalone = True


# =============================================================================
# Parser
# =============================================================================

def _parse_atom(item: str, line: int) -> Any:
    if item[0] in "\"'":
        return _Literal(re.sub(r"\\(.)", r"\1", item[1:-1]))
    if _NUMBER_RE.match(item):
        return _Literal(float(item) if "." in item else int(item))
    if item in _LITERALS:
        return _Literal(_LITERALS[item])

    data = item.startswith("@")
    if data:
        item = item[1:]

    depth = 0
    while item.startswith("../"):
        depth += 1
        item = item[3:]

    if item in ("this", "."):
        parts: tuple[str, ...] = ()
    elif item.startswith("this."):
        parts = tuple(item[5:].split("."))
    else:
        parts = tuple(item.split("."))

    if any(not part for part in parts):
        raise _syntax_error(f"Invalid path '{item}'", line)

    return _Path(parts=parts, depth=depth, data=data)


def _read_sequence(items: list[str], pos: int, line: int, closing: bool) -> tuple[list, int]:
    exprs: list = []
    while pos < len(items):
        item = items[pos]
        if item == ")":
            if closing:
                return exprs, pos + 1
            raise _syntax_error("Unexpected ')'", line)
        if item == "(":
            inner, pos = _read_sequence(items, pos + 1, line, closing=True)
            exprs.append(_as_call(inner, line))
            continue
        exprs.append(_parse_atom(item, line))
        pos += 1

    if closing:
        raise _syntax_error("Unclosed '('", line)
    return exprs, pos


def _as_call(exprs: list, line: int) -> _Call:
    if not exprs:
        raise _syntax_error("Empty expression", line)
    head = exprs[0]
    if not isinstance(head, _Path) or head.data or head.depth or len(head.parts) != 1:
        raise _syntax_error("Expected a helper name", line)
    return _Call(name=head.parts[0], args=tuple(exprs[1:]))


def _parse_expression(text: str, line: int) -> Any:
    exprs, _ = _read_sequence(_ARG_RE.findall(text), 0, line, closing=False)
    if not exprs:
        raise _syntax_error("Empty expression", line)
    if len(exprs) == 1:
        return exprs[0]
    return _as_call(exprs, line)


class _Parser:
    """토큰 목록 → 노드 트리 (recursive descent)."""

    def __init__(self, tokens: list[_Token]):
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> tuple:
        nodes, term = self._parse_program()
        if term is not None:
            tag = "{{else}}" if term.kind == "else" else f"{{{{/{term.value}}}}}"
            raise _syntax_error(f"Unexpected {tag}", term.line)
        return nodes

    def _parse_program(self) -> tuple[tuple, _Token | None]:
        nodes: list = []
        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]
            self.pos += 1

            if token.kind == "text":
                if token.value:
                    nodes.append(_Text(token.value))
            elif token.kind == "raw":
                nodes.append(_Output(_parse_expression(token.value, token.line), escape=False))
            elif token.kind == "mustache":
                nodes.append(_Output(_parse_expression(token.value, token.line), escape=True))
            elif token.kind == "open":
                nodes.append(self._parse_block(token))
            elif token.kind in ("close", "else"):
                return tuple(nodes), token
            # comment: 출력 없음

        return tuple(nodes), None

    def _parse_block(self, token: _Token, close_name: str | None = None) -> _Block:
        parts = token.value.split(None, 1)
        if not parts:
            raise _syntax_error("Block without a name", token.line)
        name = parts[0]
        if name not in _BLOCK_HELPERS:
            raise TemplateRenderError(ErrorCodes.MISSING_HELPER, helper=name, line=token.line)

        params, _ = _read_sequence(
            _ARG_RE.findall(parts[1] if len(parts) > 1 else ""), 0, token.line, closing=False
        )
        if len(params) != 1:
            raise _syntax_error(f"{{{{#{name}}}}} expects exactly one argument", token.line)

        close_name = close_name or name
        program, term = self._parse_program()
        inverse = None

        if term is not None and term.kind == "else":
            if term.value:
                # else if: 같은 닫는 태그를 공유하는 중첩 블록
                inverse = (self._parse_block(term, close_name),)
                return _Block(name, params[0], program, inverse, token.line)
            inverse, term = self._parse_program()

        if term is None:
            raise _syntax_error(f"Unclosed {{{{#{name}}}}}", token.line)
        if term.kind == "else":
            raise _syntax_error(f"Multiple {{{{else}}}} in {{{{#{name}}}}}", term.line)
        if term.value != close_name:
            raise _syntax_error(
                f"{{{{#{close_name}}}}} closed by {{{{/{term.value}}}}}", term.line
            )

        return _Block(name, params[0], program, inverse, token.line)


# =============================================================================
# Evaluation
# =============================================================================

def _lookup(value: Any, part: str) -> Any:
    if isinstance(value, dict):
        return value.get(part)
    if isinstance(value, (list, tuple)):
        if part == "length":
            return len(value)
        if part.isdigit() and int(part) < len(value):
            return value[int(part)]
    return None


def _resolve(path: _Path, stack: list, data: dict) -> Any:
    if path.data:
        value = data.get(path.parts[0]) if path.parts else None
        rest = path.parts[1:]
    else:
        index = len(stack) - 1 - path.depth
        if index < 0:
            return None
        value = stack[index]
        rest = path.parts

    for part in rest:
        value = _lookup(value, part)
    return value


def _evaluate(expr: Any, stack: list, data: dict) -> Any:
    if isinstance(expr, _Literal):
        return expr.value
    if isinstance(expr, _Path):
        return _resolve(expr, stack, data)

    helper = HELPERS.get(expr.name)
    if helper is None:
        raise TemplateRenderError(ErrorCodes.MISSING_HELPER, helper=expr.name)
    return helper(*(_evaluate(arg, stack, data) for arg in expr.args))


def _is_truthy(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return bool(value)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_to_text(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def _render_nodes(nodes: tuple, stack: list, data: dict, out: list[str]) -> None:
    for node in nodes:
        if isinstance(node, _Text):
            out.append(node.text)
        elif isinstance(node, _Output):
            text = _to_text(_evaluate(node.expr, stack, data))
            out.append(escape_html(text) if node.escape else text)
        else:
            _render_block(node, stack, data, out)


def _render_block(block: _Block, stack: list, data: dict, out: list[str]) -> None:
    value = _evaluate(block.param, stack, data)

    if block.name in ("if", "unless"):
        condition = _is_truthy(value)
        if block.name == "unless":
            condition = not condition
        branch = block.program if condition else block.inverse
        if branch:
            _render_nodes(branch, stack, data, out)

    elif block.name == "with":
        if _is_truthy(value):
            _render_nodes(block.program, stack + [value], data, out)
        elif block.inverse:
            _render_nodes(block.inverse, stack, data, out)

    else:  # each
        if isinstance(value, dict):
            items = list(value.items())
        elif isinstance(value, (list, tuple)):
            items = list(enumerate(value))
        else:
            items = []

        if not items:
            if block.inverse:
                _render_nodes(block.inverse, stack, data, out)
            return

        last = len(items) - 1
        for index, (key, item) in enumerate(items):
            frame = {
                **data,
                "index": index,
                "key": key,
                "first": index == 0,
                "last": index == last,
            }
            _render_nodes(block.program, stack + [item], frame, out)


# =============================================================================
# Public API
# =============================================================================

@lru_cache(maxsize=256)
def compile_template(source: str) -> tuple:
    """
    템플릿 소스 → 노드 트리 (캐시).

    Raises:
        TemplateRenderError: TEMPLATE_SYNTAX_ERROR, MISSING_HELPER
    """
    return _Parser(_tokenize(source)).parse()


def render_template(source: str, context: dict[str, Any]) -> str:
    """
    템플릿 렌더링.

    Args:
        source: 템플릿 문자열 (빈 문자열 허용)
        context: 루트 컨텍스트

    Returns:
        렌더링된 문자열

    Raises:
        TemplateRenderError: 파싱/평가 실패
    """
    if not source:
        return ""

    try:
        out: list[str] = []
        _render_nodes(compile_template(source), [context], {"root": context}, out)
        return "".join(out)

    except TemplateRenderError:
        raise
    except Exception as e:
        raise TemplateRenderError(
            ErrorCodes.TEMPLATE_RENDER_FAILED,
            error=str(e),
        ) from e
