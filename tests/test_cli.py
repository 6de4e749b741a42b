import io
import json

import pytest

from timeresolver import PointDate, OrdinalExpression, Ordinal, LAST, export
from timeresolver.gregorian import DayOfWeekType
from timeresolver_cli.cli import entrance


MONDAY = PointDate(weekday=DayOfWeekType.MONDAY)
AUGUST_2015 = PointDate(year=2015, month=8)
REFERENCE = "2015-03-18T12:00:00"


@pytest.fixture
def records_file(tmp_path):
    def write(data):
        path = tmp_path / "records.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return write


def output_lines(capsys):
    return [json.loads(line) for line in capsys.readouterr().out.splitlines()]


class TestEntrance:

    def test_resolves_a_list_of_records(self, records_file, capsys):
        path = records_file([
            export(OrdinalExpression(Ordinal(2), MONDAY, AUGUST_2015)),
            export(OrdinalExpression(LAST, MONDAY, AUGUST_2015)),
        ])
        assert entrance([path, "--reference", REFERENCE]) == 0
        lines = output_lines(capsys)
        assert [line["resolved"] for line in lines] == ["2015-08-10T00:00:00", "2015-08-31T00:00:00"]
        assert all(line["error"] is None for line in lines)
        assert lines[0]["expression"]["position"] == 2

    def test_single_record(self, records_file, capsys):
        path = records_file(export(PointDate(month=8, day=7)))
        assert entrance([path, "--reference", "2015-09-01"]) == 0
        assert output_lines(capsys)[0]["resolved"] == "2015-08-07T00:00:00"

    def test_failure_is_reported_per_record(self, records_file, capsys):
        path = records_file([
            export(OrdinalExpression(Ordinal(6), MONDAY, AUGUST_2015)),
            export(OrdinalExpression(Ordinal(1), MONDAY, AUGUST_2015)),
        ])
        assert entrance([path, "--reference", REFERENCE]) == 1
        failed, resolved = output_lines(capsys)
        assert failed["resolved"] is None
        assert failed["error"]["type"] == "NotGregorianDateTime"
        assert "2015-08" in failed["error"]["message"]
        assert resolved["resolved"] == "2015-08-03T00:00:00"

    def test_malformed_record(self, records_file, capsys):
        path = records_file([{"type": "interval"}])
        assert entrance([path, "--reference", REFERENCE]) == 1
        line = output_lines(capsys)[0]
        assert line["expression"] == {"type": "interval"}
        assert line["error"]["type"] == "InvalidDateTime"

    def test_output_follows_input_order(self, records_file, capsys):
        path = records_file([
            export(OrdinalExpression(Ordinal(1), MONDAY, AUGUST_2015)),
            {"type": "interval"},
            export(OrdinalExpression(Ordinal(6), MONDAY, AUGUST_2015)),
            export(OrdinalExpression(LAST, MONDAY, AUGUST_2015)),
        ])
        assert entrance([path, "--reference", REFERENCE]) == 1
        lines = output_lines(capsys)
        assert [line["resolved"] for line in lines] == [
            "2015-08-03T00:00:00", None, None, "2015-08-31T00:00:00",
        ]
        assert [line["error"] and line["error"]["type"] for line in lines] == [
            None, "InvalidDateTime", "NotGregorianDateTime", None,
        ]

    def test_render(self, records_file, capsys):
        path = records_file(export(OrdinalExpression(Ordinal(2), MONDAY, AUGUST_2015)))
        assert entrance([path, "--reference", REFERENCE, "--render"]) == 0
        line = output_lines(capsys)[0]
        assert line["expression"] == "the n. 2 Monday of 2015-08-XX -> 2015-08-10T00:00:00"

    def test_reads_stdin(self, monkeypatch, capsys):
        record = export(OrdinalExpression(LAST, MONDAY, AUGUST_2015))
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(record)))
        assert entrance(["--reference", REFERENCE]) == 0
        assert output_lines(capsys)[0]["resolved"] == "2015-08-31T00:00:00"

    def test_invalid_reference(self, records_file):
        path = records_file([])
        with pytest.raises(SystemExit):
            entrance([path, "--reference", "not a date"])

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit):
            entrance([str(tmp_path / "missing.json")])

    def test_not_a_record_list(self, records_file):
        with pytest.raises(SystemExit):
            entrance([records_file(42)])
