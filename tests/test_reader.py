"""Tests for reading CSV text into rows and records."""

import io
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import NamedTuple

import pytest

from sheetmap import ConfigurationError, ConversionError, ErrorPolicy, read_raw, read_records


class Person:
    Age: int = 0
    Name: str = ""


@dataclass
class Usage:
    billed_on: date | None = None
    bill_id: int = 0
    currency: str = ""
    revenue: float = 0.0


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0
    label: str = ""


class Pair(NamedTuple):
    left: int = 0
    right: int = 0


class Account:
    def __init__(self):
        self.owner = ""
        self._balance = 0
        self._secret = ""

    @property
    def balance(self) -> int:
        return self._balance

    @balance.setter
    def balance(self, value: int) -> None:
        if value < 0:
            raise ValueError("balance cannot be negative")
        self._balance = value


class Mixed:
    def __init__(self):
        self.age = 0
        self.Age = 0


class NeedsArgs:
    def __init__(self, required):
        self.required = required


class Guarded:
    CODES = {"a": 1, "b": 2}

    def __init__(self):
        self.name = ""
        self._code = 0

    @property
    def code(self) -> str:
        return str(self._code)

    @code.setter
    def code(self, value: str) -> None:
        self._code = self.CODES[value]


class Grade:
    LETTERS = {"a": 4, "b": 3}

    def __init__(self, raw: str):
        self.points = self.LETTERS[raw]


class Report:
    name: str = ""
    grade: Grade | None = None


@dataclass
class Tagged:
    name: str = ""
    tags: list[str] = field(default_factory=list)


class Partial:
    count: "int" = 0
    label: "str" = ""
    ghost: "UndefinedType" = None  # noqa: F821


class TestReadRaw:
    TEXT = "h1,h2\na,b\nc,\"d,e\"\n"

    def test_skip_header(self):
        assert read_raw(self.TEXT) == [["a", "b"], ["c", "d,e"]]

    def test_keep_header(self):
        rows = read_raw(self.TEXT, skip_header=False)
        assert len(rows) == 3
        assert rows[0] == ["h1", "h2"]

    def test_line_endings(self):
        assert read_raw("h\r\na\rb\nc", skip_header=False) == [["h"], ["a"], ["b"], ["c"]]

    def test_blank_line_is_single_empty_field(self):
        assert read_raw("h\n\nx\n") == [[""], ["x"]]

    def test_empty_text(self):
        assert read_raw("") == []
        assert read_raw("", skip_header=False) == []

    def test_stream_is_read_but_not_closed(self):
        stream = io.StringIO("h\n1\n2\n")
        assert read_raw(stream) == [["1"], ["2"]]
        assert not stream.closed

    def test_path_source(self, tmp_path):
        csv_file = tmp_path / "data.csv"
        csv_file.write_text("Name,City\nPaul,Montréal\n", encoding="utf-8")
        assert read_raw(csv_file) == [["Paul", "Montréal"]]


class TestReadRecords:
    def test_basic(self):
        people = read_records(Person, "Name,Age\nAlice,30\nBob,25\n")
        assert [(p.Name, p.Age) for p in people] == [("Alice", 30), ("Bob", 25)]

    def test_conversion_to_declared_types(self):
        text = "billed_on,bill_id,currency,revenue\n2021-10-01,1,USD,4041.904278\n"
        (usage,) = read_records(Usage, text)
        assert usage.billed_on == date(2021, 10, 1)
        assert usage.bill_id == 1
        assert usage.currency == "USD"
        assert usage.revenue == pytest.approx(4041.904278)

    def test_each_record_is_a_new_instance(self):
        people = read_records(Person, "Age\n1\n2\n")
        assert people[0] is not people[1]
        assert [p.Age for p in people] == [1, 2]

    def test_age_parses(self):
        (person,) = read_records(Person, "Age\n42\n")
        assert person.Age == 42

    def test_bad_value_skips_record_by_default(self):
        assert read_records(Person, "Age\nnotanumber\n") == []

    def test_skip_record_discards_earlier_assignments(self):
        people = read_records(Person, "Name,Age\nAlice,x\nBob,25\n")
        assert [p.Name for p in people] == ["Bob"]

    def test_skip_record_logs_line_number(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sheetmap.reader"):
            read_records(Person, "Name,Age\nAlice,1\nBob,x\n")
        assert "line 3" in caplog.text

    def test_skip_field_keeps_record_with_default(self):
        (person,) = read_records(
            Person, "Name,Age\nAlice,notanumber\n", on_conversion_error=ErrorPolicy.SKIP_FIELD
        )
        assert person.Age == 0
        assert person.Name == "Alice"

    def test_throw_raises_conversion_error(self):
        with pytest.raises(ConversionError) as exc_info:
            read_records(Person, "Age\n1\nnotanumber\n", on_conversion_error=ErrorPolicy.THROW)
        err = exc_info.value
        assert err.member == "Age"
        assert err.value == "notanumber"
        assert err.line_number == 3
        assert isinstance(err.__cause__, ValueError)

    def test_throw_closes_string_source(self, monkeypatch):
        opened = []
        real_stringio = io.StringIO

        def tracking_stringio(*args, **kwargs):
            stream = real_stringio(*args, **kwargs)
            opened.append(stream)
            return stream

        monkeypatch.setattr("sheetmap.reader.io.StringIO", tracking_stringio)
        with pytest.raises(ConversionError):
            read_records(Person, "Age\nx\n", on_conversion_error=ErrorPolicy.THROW)
        assert opened and all(stream.closed for stream in opened)

    def test_case_insensitive_binding(self):
        (person,) = read_records(Person, "age,NAME\n7,Zed\n")
        assert person.Age == 7
        assert person.Name == "Zed"

    def test_case_sensitive_ignores_mismatched_column(self):
        (person,) = read_records(Person, "age,Name\n7,Zed\n", case_insensitive=False)
        assert person.Age == 0
        assert person.Name == "Zed"

    def test_ambiguous_case_insensitive_header(self):
        with pytest.raises(ConfigurationError, match="ambiguous"):
            read_records(Mixed, "AGE\n1\n")

    def test_exact_case_wins_over_other_matches(self):
        (record,) = read_records(Mixed, "Age\n1\n")
        assert record.Age == 1
        assert record.age == 0

    def test_header_override_wins_over_first_line(self):
        (person,) = read_records(Person, "Name,Age\n30,Alice\n", header_override=["Age", "Name"])
        assert person.Age == 30
        assert person.Name == "Alice"

    def test_empty_header_override_still_wins(self):
        (person,) = read_records(Person, "Name,Age\nAlice,30\n", header_override=[])
        assert person.Name == ""
        assert person.Age == 0

    def test_header_override_without_header_line(self):
        people = read_records(
            Person, "Alice,30\nBob,25\n", read_first_line_as_header=False, header_override=["Name", "Age"]
        )
        assert [p.Name for p in people] == ["Alice", "Bob"]

    @pytest.mark.parametrize("override", [None, []])
    def test_missing_header_source(self, override):
        with pytest.raises(ConfigurationError):
            read_records(Person, "Alice,30\n", read_first_line_as_header=False, header_override=override)

    def test_missing_header_source_fails_before_reading(self):
        stream = io.StringIO("Alice,30\n")
        with pytest.raises(ConfigurationError):
            read_records(Person, stream, read_first_line_as_header=False)
        assert stream.tell() == 0

    def test_empty_and_unknown_columns_are_ignored(self):
        (person,) = read_records(Person, ",Unknown,Age\nx,y,5\n")
        assert person.Age == 5

    def test_short_and_long_lines(self):
        people = read_records(Person, "Name,Age\nAlice\nBob,25,extra,fields\n")
        assert [(p.Name, p.Age) for p in people] == [("Alice", 0), ("Bob", 25)]

    def test_empty_text(self):
        assert read_records(Person, "") == []

    def test_header_only(self):
        assert read_records(Person, "Name,Age\n") == []


class TestConverter:
    def test_accepted_value_wins_over_generic_conversion(self):
        (person,) = read_records(Person, "Age\n42\n", converter=lambda name, raw: (True, 99))
        assert person.Age == 99

    def test_declined_falls_back_to_generic(self):
        calls = []

        def converter(name, raw):
            calls.append((name, raw))
            return False, None

        (person,) = read_records(Person, "age,Name\n42,Ann\n", converter=converter)
        assert person.Age == 42
        assert calls == [("age", "42"), ("Name", "Ann")]

    def test_converter_rescues_values_generic_conversion_rejects(self):
        def words(name, raw):
            if name == "Age" and raw == "forty":
                return True, 40
            return False, None

        (person,) = read_records(Person, "Age\nforty\n", converter=words)
        assert person.Age == 40

    def test_converter_exception_is_conversion_error(self):
        def boom(name, raw):
            raise KeyError(raw)

        assert read_records(Person, "Age\n1\n", converter=boom) == []
        with pytest.raises(ConversionError):
            read_records(Person, "Age\n1\n", converter=boom, on_conversion_error=ErrorPolicy.THROW)


class TestRecordTypes:
    def test_frozen_dataclass_accumulates_assignments(self):
        points = read_records(Point, "x,y,label\n1,2,a\n3,4,b\n")
        assert points == [Point(1, 2, "a"), Point(3, 4, "b")]

    def test_frozen_dataclass_skip_field_keeps_other_values(self):
        (point,) = read_records(Point, "x,y,label\n1,bad,a\n", on_conversion_error=ErrorPolicy.SKIP_FIELD)
        assert point == Point(1, 0, "a")

    def test_named_tuple_accumulates_assignments(self):
        assert read_records(Pair, "left,right\n5,6\n") == [Pair(5, 6)]

    def test_property_setter(self):
        (account,) = read_records(Account, "owner,balance\nAnn,10\n")
        assert account.owner == "Ann"
        assert account.balance == 10

    def test_property_setter_rejection_is_conversion_error(self):
        assert read_records(Account, "owner,balance\nAnn,-1\n") == []

    def test_non_public_members_need_opt_in(self):
        (hidden,) = read_records(Account, "_secret\nshh\n")
        assert hidden._secret == ""
        (shown,) = read_records(Account, "_secret\nshh\n", include_non_public=True)
        assert shown._secret == "shh"

    def test_requires_default_constructor(self):
        with pytest.raises(ConfigurationError):
            read_records(NeedsArgs, "required\n1\n")

    def test_concurrent_reads(self):
        text = "Name,Age\n" + "".join(f"P{i},{i}\n" for i in range(200))
        results = []
        errors = []

        def worker():
            try:
                results.append(read_records(Person, text))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert all(len(r) == 200 for r in results)


class TestConversionFailures:
    def test_setter_lookup_error_skips_record(self):
        records = read_records(Guarded, "name,code\nx,zzz\ny,a\n")
        assert [(r.name, r.code) for r in records] == [("y", "1")]

    def test_setter_lookup_error_skips_field(self):
        (record,) = read_records(Guarded, "name,code\nx,zzz\n", on_conversion_error=ErrorPolicy.SKIP_FIELD)
        assert record.name == "x"
        assert record.code == "0"

    def test_setter_lookup_error_throws_conversion_error(self):
        with pytest.raises(ConversionError) as exc_info:
            read_records(Guarded, "code\nzzz\n", on_conversion_error=ErrorPolicy.THROW)
        assert isinstance(exc_info.value.__cause__, LookupError)

    def test_type_constructor_key_error_skips_record(self):
        reports = read_records(Report, "name,grade\nAnn,q\nBen,a\n")
        assert [r.name for r in reports] == ["Ben"]
        assert reports[0].grade.points == 4

    def test_type_constructor_key_error_skips_field(self):
        (report,) = read_records(Report, "name,grade\nAnn,q\n", on_conversion_error=ErrorPolicy.SKIP_FIELD)
        assert report.name == "Ann"
        assert report.grade is None

    def test_container_member_skips_record(self):
        assert read_records(Tagged, "name,tags\nx,abc\n") == []

    def test_container_member_keeps_default_on_skip_field(self):
        (tagged,) = read_records(Tagged, "name,tags\nx,abc\n", on_conversion_error=ErrorPolicy.SKIP_FIELD)
        assert tagged.name == "x"
        assert tagged.tags == []

    def test_unresolvable_annotations_still_convert(self):
        (record,) = read_records(Partial, "count,label,ghost\n3,x,boo\n")
        assert record.count == 3
        assert record.label == "x"
        assert record.ghost == "boo"
