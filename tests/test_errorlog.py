from datetime import datetime

import pytest

from ovenmenu.errorlog import (
    LINE_LENGTH,
    LOCK_NAME,
    LOG_NAME,
    ErrorLog,
    append_lines,
    error_timestamp,
    format_error_line,
    parse_error_target,
)

WHEN = datetime(1993, 6, 30, 21, 49, 8)


def _record(count=12, address="A01", menu="he", message="heater on"):
    return format_error_line(
        error_timestamp(WHEN), 0, 1, count, address, menu, "R1T2Z3", 5, message
    )


def test_timestamp_drops_year():
    assert error_timestamp(WHEN) == "Wed Jun 30 21:49:08"


def test_timestamp_matches_ctime_prefix():
    assert WHEN.ctime().startswith(error_timestamp(WHEN))


def test_worked_example():
    assert _record() == (
        " Jun 30 21:49:08 0v1#000012@A01 <he R1T2Z3     >05 heater on"
        + " " * 18
        + "\n"
    )


def test_record_length_fixed():
    line = _record(message="x" * 60)
    assert len(line) == LINE_LENGTH
    assert line.endswith("\n")


def test_huge_count_is_trimmed():
    line = _record(count=12345678)
    assert len(line) == LINE_LENGTH
    assert line[-1] == "\n"


@pytest.mark.parametrize("menu", ["zo", "he", "pp", "tc", "sb", "dc", "ti", "al", "ms"])
def test_parse_round_trip(menu):
    line = _record(address="0123", menu=menu)
    assert parse_error_target(line) == (menu, "0123")


def test_parse_strips_address_padding():
    assert parse_error_target(_record(address="A01")) == ("he", "A01")


def test_parse_unknown_menu():
    with pytest.raises(ValueError):
        parse_error_target(_record(menu="xx"))


def test_parse_missing_markers():
    with pytest.raises(ValueError):
        parse_error_target("nothing here")
    with pytest.raises(ValueError):
        parse_error_target("only <he here")


def test_append_and_read(tmp_path):
    lines = [_record(count=n) for n in range(3)]
    path = append_lines(lines, tmp_path)
    assert path == tmp_path / LOG_NAME
    assert not (tmp_path / LOCK_NAME).exists()
    log = ErrorLog(tmp_path)
    assert log.count() == 3
    assert log.line(1) == lines[1][:-1]


def test_append_accumulates(tmp_path):
    append_lines([_record()], tmp_path)
    append_lines([_record(), _record()], tmp_path)
    assert ErrorLog(tmp_path).count() == 3


def test_missing_log_is_empty(tmp_path):
    log = ErrorLog(tmp_path)
    assert log.count() == 0
    assert log.has_unseen() is False


def test_reading_last_line_marks_seen(tmp_path):
    append_lines([_record(), _record()], tmp_path)
    log = ErrorLog(tmp_path)
    assert log.has_unseen() is True
    log.line(0)
    assert log.seen == 0
    log.line(1)
    assert log.seen == 2
    assert log.has_unseen() is False


def test_readonly_does_not_mark_seen(tmp_path):
    append_lines([_record()], tmp_path)
    log = ErrorLog(tmp_path, readonly=True)
    log.line(0)
    assert log.seen == 0
    assert log.has_unseen() is True


def test_seen_reset_when_log_shrinks(tmp_path):
    append_lines([_record()], tmp_path)
    log = ErrorLog(tmp_path, seen=5)
    assert log.count() == 1
    assert log.seen == 0


def test_seen_kept_when_readonly(tmp_path):
    append_lines([_record()], tmp_path)
    log = ErrorLog(tmp_path, readonly=True, seen=5)
    log.count()
    assert log.seen == 5


def test_line_out_of_range(tmp_path):
    append_lines([_record()], tmp_path)
    log = ErrorLog(tmp_path)
    with pytest.raises(IndexError):
        log.line(1)
    with pytest.raises(IndexError):
        log.line(-1)


def test_partial_record_not_counted(tmp_path):
    append_lines([_record(), "partial"], tmp_path)
    assert ErrorLog(tmp_path).count() == 1