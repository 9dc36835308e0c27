"""
Tests for ipca_dashboard/parser.py: CSV text -> typed records

Covers field-count validation, per-column coercion, the retention rule and
date ordering.
"""
import logging
from datetime import date

import pytest

from conftest import HEADER, SAMPLE_ROWS, make_csv
from ipca_dashboard.errors import EmptyDatasetError, MalformedRowError
from ipca_dashboard.parser import parse_dataset, parse_records, split_fields


class TestSplitFields:
    def test_strips_whitespace(self):
        assert split_fields(" a , b ,c ") == ["a", "b", "c"]

    def test_no_quote_handling(self):
        assert split_fields('"1,5",2') == ['"1', '5"', "2"]


class TestEmptyInput:
    @pytest.mark.parametrize("text", ["", "   ", "\n\n"])
    def test_zero_lines_raises(self, text):
        with pytest.raises(EmptyDatasetError):
            parse_dataset(text)

    def test_header_only_is_valid(self):
        result = parse_dataset(HEADER + "\n")
        assert result.records == ()
        assert result.dropped == ()
        assert result.columns[0] == "DATA"


class TestParseRecords:
    def test_types(self, sample_records):
        first = sample_records[0]
        assert first.date == date(2024, 11, 1)
        assert first.year == 2024
        assert first.month == 11
        assert first.fuel_price == pytest.approx(6.12)
        assert first.ipca_monthly == pytest.approx(0.39)
        assert first.ipca_accumulated == pytest.approx(4.87)
        assert first.lag0 == pytest.approx(0.0116)

    def test_all_rows_kept(self, sample_records):
        assert len(sample_records) == len(SAMPLE_ROWS)

    def test_empty_optional_is_none(self, sample_records):
        jan = [r for r in sample_records if r.date == date(2025, 1, 1)][0]
        assert jan.lag0 is None

    def test_sorted_ascending_by_date(self):
        rows = list(reversed(SAMPLE_ROWS))
        records = parse_records(make_csv(rows))
        dates = [r.date for r in records]
        assert dates == sorted(dates)

    def test_equal_dates_keep_file_order(self):
        rows = [
            "2025-01-01,2025,1,5.00,0.10,0.10,",
            "2024-12-01,2024,12,4.90,0.20,4.00,",
            "2025-01-01,2025,1,5.50,0.30,0.30,",
        ]
        records = parse_records(make_csv(rows))
        assert [r.fuel_price for r in records] == pytest.approx([4.90, 5.00, 5.50])

    def test_crlf_line_endings(self):
        text = make_csv(SAMPLE_ROWS[:3]).replace("\n", "\r\n")
        assert len(parse_records(text)) == 3

    def test_year_month_only_date(self):
        records = parse_records(make_csv(["2024-01,2024,1,5.50,0.42,0.42,"]))
        assert records[0].date == date(2024, 1, 1)

    def test_blank_lines_ignored(self):
        text = HEADER + "\n" + SAMPLE_ROWS[0] + "\n\n" + SAMPLE_ROWS[1] + "\n"
        result = parse_dataset(text)
        assert len(result.records) == 2
        assert result.dropped == ()

    def test_leading_bom_stripped(self, sample_text):
        result = parse_dataset("\ufeff" + sample_text)
        assert result.columns[0] == "DATA"
        assert len(result.records) == len(SAMPLE_ROWS)
        assert result.dropped == ()

    def test_bom_only_raises(self):
        with pytest.raises(EmptyDatasetError):
            parse_dataset("\ufeff\n")

    def test_mixed_offset_and_plain_dates(self):
        rows = ["2024-01-01T00:00:00+03:00,2024,1,5.5,0.4,0.4,", "2024-02-01,2024,2,5.6,0.4,0.8,"]
        result = parse_dataset(make_csv(rows))
        assert [r.date for r in result.records] == [date(2024, 1, 1), date(2024, 2, 1)]
        assert result.dropped == ()

    def test_offset_keeps_local_day(self):
        records = parse_records(make_csv(["2024-03-01T01:00:00+05:00,2024,3,5.5,0.4,0.4,"]))
        assert records[0].date == date(2024, 3, 1)

    def test_extra_numeric_columns(self):
        header = HEADER + ",Diesel_Preco"
        rows = ["2024-01-01,2024,1,5.50,0.42,0.42,,6.10", "2024-02-01,2024,2,5.60,0.83,1.25,,abc"]
        records = parse_records(make_csv(rows, header=header))
        assert records[0].extras == {"Diesel_Preco": pytest.approx(6.10)}
        assert records[1].extras == {"Diesel_Preco": None}


class TestCoercion:
    def test_unparsable_optional_number_becomes_none(self):
        records = parse_records(make_csv(["2024-01-01,2024,1,5.50,0.42,n/a,xyz"]))
        assert records[0].ipca_accumulated is None
        assert records[0].lag0 is None

    def test_negative_monthly_ipca(self):
        records = parse_records(make_csv(["2024-08-01,2024,8,6.15,-0.02,3.10,"]))
        assert records[0].ipca_monthly == pytest.approx(-0.02)

    def test_zero_monthly_ipca_is_kept(self):
        records = parse_records(make_csv(["2024-08-01,2024,8,6.15,0,3.10,"]))
        assert records[0].ipca_monthly == 0.0

    def test_invalid_year_month_fall_back_to_date(self):
        records = parse_records(make_csv(["2024-05-01,abc,13,5.90,0.46,1.80,"]))
        assert records[0].year == 2024
        assert records[0].month == 5

    def test_huge_year_falls_back_to_date(self):
        records = parse_records(make_csv(["2024-01-01,99999999999999999999,1,5.5,0.4,0.4,"]))
        assert records[0].year == 2024

    def test_year_out_of_range_falls_back_to_date(self):
        records = parse_records(make_csv(["2024-06-01,0,6,5.5,0.4,0.4,", "2024-07-01,-2024,7,5.5,0.4,0.4,"]))
        assert [r.year for r in records] == [2024, 2024]

    def test_year_month_taken_from_columns(self):
        # inconsistency with DATA is not validated
        records = parse_records(make_csv(["2024-05-01,2025,11,5.90,0.46,1.80,"]))
        assert (records[0].year, records[0].month) == (2025, 11)


class TestDroppedRows:
    def test_missing_trailing_field(self):
        text = "DATA,ANO,MES,Gasolina_Preco,IPCA_Mensal\n2024-01,2024,1,5.50"
        result = parse_dataset(text)
        assert len(result.records) == 0
        assert len(result.dropped) == 1
        assert isinstance(result.dropped[0], MalformedRowError)
        assert result.dropped[0].line_number == 2

    def test_field_count_logged(self, caplog):
        text = "DATA,ANO,MES,Gasolina_Preco,IPCA_Mensal\n2024-01,2024,1,5.50"
        with caplog.at_level(logging.WARNING, logger="ipca_dashboard.parser"):
            parse_dataset(text)
        assert "expected 5 fields, found 4" in caplog.text

    def test_unparsable_date(self):
        rows = ["not-a-date,2024,1,5.50,0.42,0.42,", SAMPLE_ROWS[0]]
        result = parse_dataset(make_csv(rows))
        assert len(result.records) == 1
        assert "unparsable date" in result.dropped[0].reason

    @pytest.mark.parametrize(
        "row",
        [
            "2024-01-01,2024,1,,0.42,0.42,",
            "2024-01-01,2024,1,5.50,,0.42,",
            "2024-01-01,2024,1,abc,0.42,0.42,",
            "2024-01-01,2024,1,5.50,nan,0.42,",
        ],
    )
    def test_missing_required_value(self, row):
        result = parse_dataset(make_csv([row]))
        assert result.records == ()
        assert "missing required value" in result.dropped[0].reason

    def test_missing_required_column_drops_everything(self):
        text = "DATA,ANO,MES,IPCA_Mensal\n2024-01-01,2024,1,0.42\n"
        result = parse_dataset(text)
        assert result.records == ()
        assert len(result.dropped) == 1

    def test_dropped_sorted_by_line(self):
        rows = [
            "2024-01-01,2024,1,,0.42,0.42,",
            "bad,2024,2,5.0,0.1,0.5,",
            "2024-03-01,2024,3",
        ]
        result = parse_dataset(make_csv(rows))
        assert [e.line_number for e in result.dropped] == [2, 3, 4]
