import pytest

from conftest import BOUNDARY, build_multipart, elm_text
from translation.errors import MissingBoundaryError
from translation.multipart import (
    MIN_JSON_LENGTH,
    HeaderTerminator,
    decode_part,
    find_header_end,
    resolve_boundary,
    split_parts,
    strip_boundary_residue,
)


def test_resolve_boundary_strips_quotes():
    ct = 'multipart/form-data; boundary="Boundary_123"'
    assert resolve_boundary(ct) == "Boundary_123"


def test_resolve_boundary_unquoted_is_identical():
    assert resolve_boundary("multipart/form-data; boundary=Boundary_123") == "Boundary_123"
    assert resolve_boundary("multipart/form-data;boundary=Boundary_123; charset=utf-8") == (
        "Boundary_123"
    )


def test_resolve_boundary_single_quotes():
    assert resolve_boundary("multipart/form-data; boundary='abc'") == "abc"


@pytest.mark.parametrize(
    "content_type",
    ["multipart/form-data", "", 'multipart/form-data; boundary=""'],
)
def test_resolve_boundary_missing(content_type):
    with pytest.raises(MissingBoundaryError):
        resolve_boundary(content_type)


def test_header_terminators_are_ordered():
    assert [t.value for t in HeaderTerminator] == ["\r\n\r\n", "\n\n", "\r\r"]


def test_split_parts_drops_preamble_and_terminal_marker():
    body = build_multipart([("Foo", elm_text("Foo")), ("Bar", elm_text("Bar"))])
    parts = split_parts(body, BOUNDARY)
    assert len(parts) == 2
    assert 'name="Foo"' in parts[0]
    assert 'name="Bar"' in parts[1]


def test_split_parts_skips_parts_without_disposition():
    body = f"--{BOUNDARY}\r\nContent-Type: text/plain\r\n\r\nhello\r\n--{BOUNDARY}--\r\n"
    assert split_parts(body, BOUNDARY) == []


@pytest.mark.parametrize("newline", ["\r\n", "\n", "\r"])
def test_decode_part_accepts_each_line_ending(newline):
    body = build_multipart([("Foo", elm_text("Foo"))], newline=newline)
    (part,) = split_parts(body, BOUNDARY)
    decoded = decode_part(part)
    assert decoded is not None
    assert decoded.name == "Foo"
    assert decoded.payload["library"]["identifier"]["id"] == "Foo"


def test_find_header_end_prefers_earliest_separator():
    # LF headers, CRLF blank line later inside the body.
    part = 'Content-Disposition: form-data; name="A"\n\n{"x": "\r\n\r\n"}'
    end = find_header_end(part)
    assert part[end:] == '{"x": "\r\n\r\n"}'


def test_find_header_end_none_without_separator():
    assert find_header_end('Content-Disposition: form-data; name="A"\r\n{"a": 1}') is None


def test_decode_part_ignores_filename_parameter():
    part = (
        '\r\nContent-Disposition: form-data; filename="x.json"; name="Foo"\r\n\r\n'
        + elm_text("Foo")
        + "\r\n"
    )
    decoded = decode_part(part)
    assert decoded is not None
    assert decoded.name == "Foo"


def test_decode_part_without_name_is_skipped():
    part = "\r\nContent-Disposition: form-data\r\n\r\n" + elm_text("Foo")
    assert decode_part(part) is None


def test_decode_part_without_separator_is_skipped():
    part = '\r\nContent-Disposition: form-data; name="Foo"\r\n' + '{"library": {}}'
    assert decode_part(part) is None


def test_decode_part_short_body_is_skipped():
    part = '\r\nContent-Disposition: form-data; name="Foo"\r\n\r\n{}\r\n'
    assert len("{}") < MIN_JSON_LENGTH
    assert decode_part(part) is None


def test_decode_part_truncated_json_is_skipped():
    part = (
        '\r\nContent-Disposition: form-data; name="Foo"\r\n\r\n'
        '{"library": {"identifier": {"id": "Foo"'
    )
    assert decode_part(part) is None


def test_decode_part_strips_boundary_residue():
    part = (
        '\r\nContent-Disposition: form-data; name="Foo"\r\n\r\n'
        + elm_text("Foo")
        + "\r\n--Boundary_9_9_9\r\nContent-Disposition: form-data; name=\"Other\"\r\n"
    )
    decoded = decode_part(part)
    assert decoded is not None
    assert decoded.payload["library"]["identifier"]["id"] == "Foo"


def test_strip_boundary_residue_keeps_plain_json():
    text = '{\n  "a": -1,\n  "b": "--not-a-boundary"\n}\n'
    assert strip_boundary_residue(text) == text.strip()
