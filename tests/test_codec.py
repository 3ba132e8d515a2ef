import io
import logging

import numpy as np
import pytest

from intmatrix import codec, config
from intmatrix.arithmetic import equal
from intmatrix.config import ELEMENT_MIN, ParseMode
from intmatrix.errors import AllocationError, IoError, ParseError, ShapeError
from intmatrix.initializers import init_random
from intmatrix.store import allocate, from_rows

from conftest import CountingAllocator


def test_dump_format(a):
    assert codec.dump(a) == "1 2 \n3 4 \n"


def test_dump_negative_values():
    assert codec.dump(from_rows([[-1, 0, 7]])) == "-1 0 7 \n"


def test_dump_empty_shapes():
    assert codec.dump(allocate(0, 0)) == ""
    assert codec.dump(allocate(0, 3)) == ""
    assert codec.dump(allocate(2, 0)) == "\n\n"


def test_parse_basic(a):
    m = codec.parse("1 2\n3 4\n")
    assert m.shape == (2, 2)
    assert equal(m, a)


def test_parse_empty_text():
    m = codec.parse("")
    assert m.shape == (0, 0)
    assert m.is_allocated


def test_parse_only_blank_lines():
    assert codec.parse("\n\n   \n").shape == (0, 0)


def test_parse_skips_blank_lines(a):
    assert equal(codec.parse("\n1 2\n\n3 4\n\n"), a)


def test_parse_tolerates_trailing_space_and_crlf(a):
    assert equal(codec.parse("1 2 \r\n3 4 \r\n"), a)
    assert equal(codec.parse("1   2\n\t3 4"), a)


def test_round_trip():
    m = allocate(6, 4)
    init_random(m, -1000, 1000, rng=np.random.default_rng(7))
    assert equal(codec.parse(codec.dump(m)), m)


def test_round_trip_extreme_values():
    m = from_rows([[ELEMENT_MIN, config.ELEMENT_MAX], [0, -1]])
    assert equal(codec.parse(codec.dump(m)), m)


def test_lenient_parse_uses_atoi_semantics():
    m = codec.parse("12abc x -3\n+4 - 5\n", mode=ParseMode.LENIENT)
    assert m.to_list() == [[12, 0, -3], [4, 0, 5]]


def test_lenient_parse_warns_about_coerced_tokens(caplog):
    with caplog.at_level(logging.WARNING, logger="intmatrix"):
        codec.parse("1 x\n", mode=ParseMode.LENIENT)
    assert "coerced" in caplog.text


def test_lenient_parse_wraps_out_of_range_values():
    m = codec.parse("2147483648\n", mode="lenient")
    assert m.to_list() == [[ELEMENT_MIN]]


def test_lenient_parse_truncates_and_zero_fills_ragged_rows(caplog):
    with caplog.at_level(logging.WARNING, logger="intmatrix"):
        m = codec.parse("1 2 3\n4 5 6 7\n8\n", mode=ParseMode.LENIENT)
    assert m.to_list() == [[1, 2, 3], [4, 5, 6], [8, 0, 0]]
    assert "2 row(s)" in caplog.text


def test_strict_parse_rejects_non_numeric_token():
    with pytest.raises(ParseError) as excinfo:
        codec.parse("1 2\n3 four\n", mode=ParseMode.STRICT)
    assert excinfo.value.line_number == 2
    assert excinfo.value.token == "four"


def test_strict_parse_rejects_partial_number():
    with pytest.raises(ParseError):
        codec.parse("12abc\n", mode=ParseMode.STRICT)


def test_strict_parse_rejects_out_of_range_value():
    with pytest.raises(ParseError):
        codec.parse("2147483648\n", mode=ParseMode.STRICT)


def test_strict_parse_rejects_ragged_rows():
    with pytest.raises(ShapeError):
        codec.parse("1 2\n3\n", mode=ParseMode.STRICT)


def test_strict_parse_accepts_well_formed_text(a):
    assert equal(codec.parse("1 2 \n3 4 \n", mode=ParseMode.STRICT), a)


def test_strict_failure_releases_buffer():
    allocator = CountingAllocator()
    with pytest.raises(ParseError):
        codec.parse("1 2\nx 4\n", mode=ParseMode.STRICT, allocator=allocator)
    assert allocator.calls == 1
    assert allocator.live == 0


def test_default_mode_follows_environment_at_call_time(monkeypatch):
    monkeypatch.setenv(config.PARSE_MODE_ENV_VAR, "strict")
    with pytest.raises(ParseError):
        codec.parse("x\n")


def test_parse_mode_from_environment(monkeypatch, caplog):
    monkeypatch.setenv(config.PARSE_MODE_ENV_VAR, "STRICT")
    assert config.get_default_parse_mode() == ParseMode.STRICT

    monkeypatch.setenv(config.PARSE_MODE_ENV_VAR, "bogus")
    with caplog.at_level(logging.WARNING, logger="intmatrix"):
        assert config.get_default_parse_mode() == ParseMode.LENIENT
    assert "bogus" in caplog.text


def test_parse_allocation_failure():
    with pytest.raises(AllocationError):
        codec.parse("1 2\n", allocator=CountingAllocator(fail_on_call=1))


def test_dump_to_text_and_byte_sinks(a):
    text_sink = io.StringIO()
    codec.dump_to(a, text_sink)
    assert text_sink.getvalue() == "1 2 \n3 4 \n"

    byte_sink = io.BytesIO()
    codec.dump_to(a, byte_sink)
    assert byte_sink.getvalue() == b"1 2 \n3 4 \n"


def test_parse_from_text_and_byte_sources(a):
    assert equal(codec.parse_from(io.StringIO("1 2\n3 4\n")), a)
    assert equal(codec.parse_from(io.BytesIO(b"1 2\n3 4\n")), a)


def test_parse_from_undecodable_bytes():
    with pytest.raises(IoError):
        codec.parse_from(io.BytesIO(b"\xff\xfe 1\n"))


def test_parse_from_unreadable_source():
    source = io.BytesIO(b"1 2\n")
    source.close()
    with pytest.raises(IoError):
        codec.parse_from(source)


def test_save_and_load(tmp_path, a):
    path = tmp_path / "a.txt"
    codec.save(a, path)
    assert path.read_bytes() == b"1 2 \n3 4 \n"
    assert equal(codec.load(path), a)


def test_load_missing_file(tmp_path):
    with pytest.raises(IoError):
        codec.load(tmp_path / "missing.txt")


def test_io_error_is_an_os_error(tmp_path):
    with pytest.raises(OSError):
        codec.load(tmp_path / "missing.txt")


def test_save_to_unwritable_path(tmp_path, a):
    with pytest.raises(IoError):
        codec.save(a, tmp_path / "no" / "such" / "dir" / "a.txt")


def test_dump_to_failing_sink(a):
    class BrokenSink(io.RawIOBase):
        def writable(self):
            return True

        def write(self, data):
            raise OSError("disk full")

    with pytest.raises(IoError):
        codec.dump_to(a, BrokenSink())


def test_default_mode_switches_back_when_environment_changes(monkeypatch):
    monkeypatch.setenv(config.PARSE_MODE_ENV_VAR, "strict")
    with pytest.raises(ParseError):
        codec.parse("x\n")
    monkeypatch.delenv(config.PARSE_MODE_ENV_VAR)
    assert codec.parse("x\n").to_list() == [[0]]


def test_lenient_parse_wraps_very_long_numbers():
    m = codec.parse("1 " + "9" * 5000 + "\n", mode=ParseMode.LENIENT)
    # 10**5000 and 10**32 are both multiples of 2**32
    assert m.to_list() == [[1, config.wrap(10**32 - 1)]]


def test_lenient_parse_wraps_very_long_negative_numbers():
    m = codec.parse("-1" + "0" * 4999 + "\n", mode=ParseMode.LENIENT)
    assert m.to_list() == [[0]]


def test_strict_parse_rejects_very_long_numbers():
    with pytest.raises(ParseError) as excinfo:
        codec.parse("1 " + "9" * 5000 + "\n", mode=ParseMode.STRICT)
    assert excinfo.value.line_number == 1


def test_strict_parse_accepts_leading_zeros():
    m = codec.parse("-" + "0" * 5000 + "7\n", mode=ParseMode.STRICT)
    assert m.to_list() == [[-7]]


def test_rows_end_only_at_newline():
    m = codec.parse("1\x0c2 3\n4 5\n", mode=ParseMode.LENIENT)
    assert m.shape == (2, 2)
    assert m.to_list() == [[1, 3], [4, 5]]


def test_strict_parse_rejects_control_character_inside_token():
    with pytest.raises(ParseError) as excinfo:
        codec.parse("1\x0c2 3\n4 5\n", mode=ParseMode.STRICT)
    assert excinfo.value.token == "1\x0c2"


def test_dump_to_plain_writer_receives_text(a):
    class Collector:
        def __init__(self):
            self.parts = []

        def write(self, data):
            self.parts.append(data)

    sink = Collector()
    codec.dump_to(a, sink)
    assert "".join(sink.parts) == "1 2 \n3 4 \n"


def test_dump_to_binary_mode_writer_receives_bytes(a):
    class BinaryCollector:
        mode = "wb"

        def __init__(self):
            self.data = b""

        def write(self, data):
            self.data += data

    sink = BinaryCollector()
    codec.dump_to(a, sink)
    assert sink.data == b"1 2 \n3 4 \n"


def test_failed_save_keeps_previous_file(tmp_path, a, monkeypatch):
    path = tmp_path / "a.txt"
    path.write_text("7 \n", encoding="utf-8")

    def failing_dump_to(m, sink):
        sink.write("1 ")
        raise IoError("disk full")

    monkeypatch.setattr(codec, "dump_to", failing_dump_to)
    with pytest.raises(IoError):
        codec.save(a, path)

    assert path.read_text(encoding="utf-8") == "7 \n"
    assert [p.name for p in tmp_path.iterdir()] == ["a.txt"]


def test_save_replaces_existing_file(tmp_path, a):
    path = tmp_path / "a.txt"
    path.write_text("something else entirely\n", encoding="utf-8")
    codec.save(a, path)
    assert path.read_bytes() == b"1 2 \n3 4 \n"
    assert [p.name for p in tmp_path.iterdir()] == ["a.txt"]
