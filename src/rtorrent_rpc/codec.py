"""XML-RPC wire codec."""

from __future__ import annotations

import base64
import binascii
import copy
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable
from xml.sax.saxutils import escape

from .errors import DecodeError, EncodeError
from .value import INT64_MAX, INT64_MIN, Kind, Value

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

DATETIME_FORMAT = "%Y%m%dT%H:%M:%S"

_FRAGMENT_LIMIT = 200
_INT_RE = re.compile(r"^[+-]?\d+$")
_DOUBLE_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
# Characters outside the XML 1.0 Char production cannot be carried at all.
_INVALID_XML_RE = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")
# A raw CR is normalized to LF by the parser; the character reference survives.
_ESCAPES = {"'": "&apos;", '"': "&quot;", "\r": "&#13;"}


@dataclass(frozen=True)
class Fault:
    code: int
    message: str


@dataclass(frozen=True)
class Response:
    value: Value | None = None
    fault: Fault | None = None

    @property
    def ok(self) -> bool:
        return self.fault is None


# Encoding.


def encode_call(method: str, args: Iterable[Any] = ()) -> bytes:
    """Serialize a method call into a request document.

    Arguments may be `Value` instances or plain Python objects accepted by
    `Value.from_python`.
    """
    if not isinstance(method, str) or not method:
        raise EncodeError("method name must be a non-empty string")
    params = "".join(f"<param>{_encode_value(Value.from_python(a))}</param>" for a in args)
    body = (
        f"<methodCall><methodName>{_escape_text(method)}</methodName>"
        f"<params>{params}</params></methodCall>"
    )
    return _document(body)


def encode_response(value: Any) -> bytes:
    body = f"<methodResponse><params><param>{_encode_value(Value.from_python(value))}</param></params></methodResponse>"
    return _document(body)


def encode_fault(code: int, message: str) -> bytes:
    fault = Value.struct(
        {"faultCode": Value.integer(code), "faultString": Value.string(message)}
    )
    return _document(f"<methodResponse><fault>{_encode_value(fault)}</fault></methodResponse>")


def _document(body: str) -> bytes:
    return f'<?xml version="1.0"?>\n{body}\n'.encode("utf-8")


def _escape_text(s: str) -> str:
    m = _INVALID_XML_RE.search(s)
    if m is not None:
        raise EncodeError(f"string contains a character not allowed in XML: {m.group(0)!r}")
    return escape(s, _ESCAPES)


def _encode_value(v: Value) -> str:
    k = v.kind
    if k is Kind.INT:
        tag = "i4" if INT32_MIN <= v.data <= INT32_MAX else "i8"
        return f"<value><{tag}>{v.data}</{tag}></value>"
    if k is Kind.DOUBLE:
        return f"<value><double>{v.data!r}</double></value>"
    if k is Kind.BOOLEAN:
        return f"<value><boolean>{1 if v.data else 0}</boolean></value>"
    if k is Kind.STRING:
        return f"<value><string>{_escape_text(v.data)}</string></value>"
    if k is Kind.DATETIME:
        return f"<value><dateTime.iso8601>{v.data.strftime(DATETIME_FORMAT)}</dateTime.iso8601></value>"
    if k is Kind.BINARY:
        return f"<value><base64>{base64.b64encode(v.data).decode('ascii')}</base64></value>"
    if k is Kind.ARRAY:
        items = "".join(_encode_value(item) for item in v.data)
        return f"<value><array><data>{items}</data></array></value>"
    if k is Kind.STRUCT:
        members = "".join(
            f"<member><name>{_escape_text(name)}</name>{_encode_value(member)}</member>"
            for name, member in v.data.items()
        )
        return f"<value><struct>{members}</struct></value>"
    if k is Kind.NIL:
        return "<value><nil/></value>"
    raise EncodeError(f"unsupported value kind: {k!r}")


# Decoding.


def decode_response(payload: bytes) -> Response:
    """Parse a response document into a value or a fault.

    A fault is a normal outcome and is returned, not raised.
    """
    root = _parse(payload)
    if _local(root.tag) != "methodResponse":
        raise DecodeError("expected <methodResponse> root", fragment=_fragment(root))
    _reject_text(root)
    children = list(root)
    if len(children) != 1:
        raise DecodeError("methodResponse must hold exactly one element", fragment=_fragment(root))
    body = children[0]
    tag = _local(body.tag)

    if tag == "params":
        params = _decode_params(body)
        if len(params) != 1:
            raise DecodeError(
                f"expected exactly one return value, got {len(params)}", fragment=_fragment(body)
            )
        return Response(value=params[0])

    if tag == "fault":
        _reject_text(body)
        value = _decode_value(_only_child(body, "value"))
        return Response(fault=_decode_fault(value, body))

    raise DecodeError(f"unexpected <{tag}> in methodResponse", fragment=_fragment(body))


def decode_call(payload: bytes) -> tuple[str, list[Value]]:
    """Parse a request document into its method name and arguments."""
    root = _parse(payload)
    if _local(root.tag) != "methodCall":
        raise DecodeError("expected <methodCall> root", fragment=_fragment(root))
    _reject_text(root)
    children = list(root)
    if not children or _local(children[0].tag) != "methodName":
        raise DecodeError("methodCall must start with <methodName>", fragment=_fragment(root))
    name_elem = children[0]
    if len(name_elem):
        raise DecodeError("unexpected element in <methodName>", fragment=_fragment(name_elem))
    method = (name_elem.text or "").strip()
    if not method:
        raise DecodeError("empty method name", fragment=_fragment(name_elem))

    rest = children[1:]
    if not rest:
        return method, []
    if len(rest) > 1 or _local(rest[0].tag) != "params":
        raise DecodeError("unexpected content after <methodName>", fragment=_fragment(root))
    return method, _decode_params(rest[0])


def _parse(payload: bytes) -> ET.Element:
    if not payload:
        raise DecodeError("empty response")
    try:
        return ET.fromstring(payload)
    except ET.ParseError as e:
        raise DecodeError(f"malformed XML ({e})", fragment=_snippet(payload)) from e


def _decode_params(params: ET.Element) -> list[Value]:
    _reject_text(params)
    out: list[Value] = []
    for param in params:
        if _local(param.tag) != "param":
            raise DecodeError(f"unexpected <{_local(param.tag)}> in params", fragment=_fragment(param))
        _reject_text(param)
        out.append(_decode_value(_only_child(param, "value")))
    return out


def _decode_fault(value: Value, elem: ET.Element) -> Fault:
    if value.kind is not Kind.STRUCT:
        raise DecodeError("fault must hold a struct", fragment=_fragment(elem))
    members = value.data
    code = members.get("faultCode")
    message = members.get("faultString")
    if code is None or code.kind is not Kind.INT:
        raise DecodeError("fault is missing an integer faultCode", fragment=_fragment(elem))
    if message is None or message.kind is not Kind.STRING:
        raise DecodeError("fault is missing a string faultString", fragment=_fragment(elem))
    return Fault(code=code.data, message=message.data)


def _decode_value(elem: ET.Element) -> Value:
    if _local(elem.tag) != "value":
        raise DecodeError(f"expected <value>, got <{_local(elem.tag)}>", fragment=_fragment(elem))
    children = list(elem)
    if not children:
        # An untyped value is a string.
        return Value.string(elem.text or "")
    if len(children) > 1:
        raise DecodeError("value holds more than one element", fragment=_fragment(elem))
    _reject_text(elem)
    typed = children[0]
    tag = _local(typed.tag)

    if tag == "array":
        return _decode_array(typed)
    if tag == "struct":
        return _decode_struct(typed)

    if len(typed):
        raise DecodeError(f"unexpected element inside <{tag}>", fragment=_fragment(typed))
    text = typed.text or ""

    if tag in {"i4", "i8", "int"}:
        s = text.strip()
        if not _INT_RE.match(s):
            raise DecodeError(f"invalid integer {s!r}", fragment=_fragment(typed))
        n = int(s)
        if n < INT64_MIN or n > INT64_MAX:
            raise DecodeError(f"integer out of 64-bit range: {s}", fragment=_fragment(typed))
        return Value(Kind.INT, n)
    if tag == "double":
        s = text.strip()
        if not _DOUBLE_RE.match(s):
            raise DecodeError(f"invalid double {s!r}", fragment=_fragment(typed))
        d = float(s)
        if not math.isfinite(d):
            raise DecodeError(f"double out of range: {s}", fragment=_fragment(typed))
        return Value(Kind.DOUBLE, d)
    if tag == "boolean":
        s = text.strip()
        if s not in {"0", "1"}:
            raise DecodeError(f"invalid boolean {s!r}", fragment=_fragment(typed))
        return Value(Kind.BOOLEAN, s == "1")
    if tag == "string":
        return Value(Kind.STRING, text)
    if tag == "dateTime.iso8601":
        try:
            return Value(Kind.DATETIME, datetime.strptime(text.strip(), DATETIME_FORMAT))
        except ValueError as e:
            raise DecodeError(f"invalid dateTime ({e})", fragment=_fragment(typed)) from e
    if tag == "base64":
        try:
            raw = base64.b64decode("".join(text.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"invalid base64 ({e})", fragment=_fragment(typed)) from e
        return Value(Kind.BINARY, raw)
    if tag == "nil":
        if text.strip():
            raise DecodeError("nil must be empty", fragment=_fragment(typed))
        return Value.nil()

    raise DecodeError(f"unrecognized value tag <{tag}>", fragment=_fragment(typed))


def _decode_array(elem: ET.Element) -> Value:
    _reject_text(elem)
    data = _only_child(elem, "data")
    _reject_text(data)
    return Value(Kind.ARRAY, tuple(_decode_value(item) for item in data))


def _decode_struct(elem: ET.Element) -> Value:
    _reject_text(elem)
    members: dict[str, Value] = {}
    for member in elem:
        if _local(member.tag) != "member":
            raise DecodeError(f"unexpected <{_local(member.tag)}> in struct", fragment=_fragment(member))
        _reject_text(member)
        parts = list(member)
        if len(parts) != 2 or _local(parts[0].tag) != "name":
            raise DecodeError("member must hold <name> then <value>", fragment=_fragment(member))
        name_elem, value_elem = parts
        if len(name_elem):
            raise DecodeError("unexpected element in <name>", fragment=_fragment(name_elem))
        name = name_elem.text or ""
        if name in members:
            raise DecodeError(f"duplicate struct member {name!r}", fragment=_fragment(member))
        members[name] = _decode_value(value_elem)
    return Value.struct(members)


def _only_child(elem: ET.Element, tag: str) -> ET.Element:
    children = list(elem)
    if len(children) != 1 or _local(children[0].tag) != tag:
        raise DecodeError(
            f"<{_local(elem.tag)}> must hold exactly one <{tag}>", fragment=_fragment(elem)
        )
    return children[0]


def _reject_text(elem: ET.Element) -> None:
    """Container elements may only hold whitespace between their children."""
    if (elem.text or "").strip():
        raise DecodeError(f"unexpected text in <{_local(elem.tag)}>", fragment=_fragment(elem))
    for child in elem:
        if (child.tail or "").strip():
            raise DecodeError(f"unexpected text in <{_local(elem.tag)}>", fragment=_fragment(elem))


def _local(tag: str) -> str:
    # Namespaced tags (e.g. the `ex:nil` extension) parse as "{uri}name".
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _fragment(elem: ET.Element) -> str:
    # tostring serializes the tail too; render a shallow copy without it.
    head = copy.copy(elem)
    head.tail = None
    return _truncate(ET.tostring(head, encoding="unicode"))


def _snippet(payload: bytes) -> str:
    return _truncate(payload.decode("utf-8", errors="replace").strip())


def _truncate(text: str) -> str:
    if len(text) > _FRAGMENT_LIMIT:
        return text[:_FRAGMENT_LIMIT] + "..."
    return text
