"""
Tests for the CSV tokenizer, row normalizer and example template.
"""

from src.services.csv_parser import (
    EXAMPLE_CSV_HEADERS,
    csv_row_to_object,
    generate_example_csv,
    parse_csv,
    quote_field,
    serialize_row,
)


# ── parse_csv ────────────────────────────────────────────


class TestParseCsv:
    def test_simple_rows(self):
        assert parse_csv("a,b,c\n1,2,3") == [["a", "b", "c"], ["1", "2", "3"]]

    def test_line_endings(self):
        expected = [["a", "b"], ["1", "2"], ["3", "4"]]
        assert parse_csv("a,b\r\n1,2\r3,4\n") == expected

    def test_quoted_comma_and_newline(self):
        rows = parse_csv('name,address\n"Smith, John","12 Main St\nApt 4"')
        assert rows[1] == ["Smith, John", "12 Main St\nApt 4"]

    def test_escaped_quote(self):
        rows = parse_csv('note\n"She said ""yes"""')
        assert rows[1] == ['She said "yes"']

    def test_fields_are_trimmed(self):
        assert parse_csv("  a , b  \n") == [["a", "b"]]

    def test_blank_rows_dropped(self):
        assert parse_csv("a,b\n\n , \n1,2\n\n") == [["a", "b"], ["1", "2"]]

    def test_empty_input(self):
        assert parse_csv("") == []

    def test_trailing_empty_field_kept(self):
        assert parse_csv("a,b,\n") == [["a", "b", ""]]


# ── csv_row_to_object ────────────────────────────────────


class TestCsvRowToObject:
    def test_headers_normalized(self):
        record = csv_row_to_object([" Client_Name ", "CITY"], ["Jane", "Austin"])
        assert record == {"client_name": "Jane", "city": "Austin"}

    def test_missing_trailing_fields_are_empty_strings(self):
        record = csv_row_to_object(["a", "b", "c"], ["1"])
        assert record == {"a": "1", "b": "", "c": ""}


# ── Serialization ────────────────────────────────────────


class TestSerialize:
    def test_plain_row_round_trips(self):
        row = ["John", "buyer", "450000"]
        assert parse_csv(serialize_row(row)) == [row]

    def test_comma_field_round_trips(self):
        row = ["Smith, John", 'The "Oaks"']
        assert parse_csv(serialize_row(row)) == [row]

    def test_quote_field(self):
        assert quote_field("plain") == "plain"
        assert quote_field("a,b") == '"a,b"'
        assert quote_field(None) == ""


# ── generate_example_csv ─────────────────────────────────


class TestExampleCsv:
    def test_header_row(self):
        header = generate_example_csv().split("\n")[0]
        assert header == (
            "client_name,client_phone,client_email,property_address,city,state,zip,"
            "deal_type,lead_source_name,pipeline_status,expected_sale_price,"
            "actual_sale_price,gross_commission_rate,brokerage_split_rate,"
            "referral_out_rate,referral_in_rate,transaction_fee,close_date"
        )

    def test_three_rows_of_eighteen_columns(self):
        rows = parse_csv(generate_example_csv())
        assert len(rows) == 4
        assert all(len(row) == len(EXAMPLE_CSV_HEADERS) == 18 for row in rows)

    def test_uses_workspace_statuses(self):
        rows = parse_csv(generate_example_csv(["Lead", "Closed"]))
        statuses = {csv_row_to_object(rows[0], row)["pipeline_status"] for row in rows[1:]}
        assert statuses <= {"Lead", "Closed"}
