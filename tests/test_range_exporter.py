import logging
import math

import pytest

from sqlcsv_export.core.range_exporter import RangeExporter
from sqlcsv_export.core.types import ExportJob, ProcessingStage, QuerySource, TableSource
from sqlcsv_export.exceptions import ExportValidationError


COLUMNS = [("id", int), ("name", str)]


def rows(count):
    return ((i, f"name {i}") for i in range(count))


def make_job(path, settings, source=None, batch_size=2, locale="en-US"):
    return ExportJob(
        source=source or TableSource(name="Customers"),
        output_path=str(path),
        connection=settings,
        batch_size=batch_size,
        locale=locale,
    )


def test_export_writes_all_rows(tmp_path, settings, tracker, make_database, read_csv):
    database = make_database(columns=COLUMNS, rows=rows(5))
    path = tmp_path / "customers.csv"

    result = RangeExporter(tracker, database).export(make_job(path, settings))

    assert result.success
    assert result.last_stage == ProcessingStage.COMPLETE
    assert result.rows == 5
    assert result.batches == 3
    assert read_csv(path) == [["id", "name"]] + [[str(i), f"name {i}"] for i in range(5)]


@pytest.mark.parametrize("row_count, batch_size", [(1, 1), (3, 3), (7, 3), (10, 1), (4, 100)])
def test_flush_count_is_ceiling_of_rows_over_batch_size(
        tmp_path, settings, tracker, make_database, read_csv, row_count, batch_size
):
    database = make_database(columns=COLUMNS, rows=rows(row_count))
    path = tmp_path / "out.csv"

    result = RangeExporter(tracker, database).export(make_job(path, settings, batch_size=batch_size))

    assert result.batches == math.ceil(row_count / batch_size)
    assert len(read_csv(path)) == row_count + 1


def test_header_matches_cursor_metadata_across_batches(tmp_path, settings, tracker, make_database, read_csv):
    columns = [("z_last", str), ("a_first", int), ("m_middle", str)]
    database = make_database(columns=columns, rows=[("x", i, "y") for i in range(7)])
    path = tmp_path / "out.csv"

    RangeExporter(tracker, database).export(make_job(path, settings, batch_size=3))

    lines = read_csv(path)
    assert lines[0] == ["z_last", "a_first", "m_middle"]
    assert lines.count(["z_last", "a_first", "m_middle"]) == 1


def test_large_export_in_three_flushes(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(250_000))
    path = tmp_path / "big.csv"

    result = RangeExporter(tracker, database).export(make_job(path, settings, batch_size=100_000))

    assert result.batches == 3
    assert result.rows == 250_000
    assert database.cursors[0].fetch_sizes == [100_000] * 4
    assert path.read_bytes().count(b"\r\n") == 250_001


def test_empty_result_creates_no_file(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=[])
    path = tmp_path / "empty.csv"

    result = RangeExporter(tracker, database).export(make_job(path, settings))

    assert result.success
    assert result.rows == 0
    assert result.batches == 0
    assert not result.file_created
    assert not path.exists()


def test_table_source_expands_to_select_star(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(1))
    source = TableSource(name="Order]Lines", schema="sales")

    RangeExporter(tracker, database).export(make_job(tmp_path / "o.csv", settings, source=source))

    assert database.executed == [("SELECT * FROM [sales].[Order]]Lines]", None)]


def test_query_source_is_used_verbatim(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(1))
    query = "SELECT id, name FROM dbo.Customers WHERE id > 10"

    RangeExporter(tracker, database).export(
        make_job(tmp_path / "q.csv", settings, source=QuerySource(text=query))
    )

    assert database.executed == [(query, None)]


def test_resources_are_released_on_success(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(3))

    RangeExporter(tracker, database).export(make_job(tmp_path / "c.csv", settings))

    assert database.connections[0].closed
    assert database.cursors[0].closed


def test_connection_failure_is_reported(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(3), fail_connect_on={0})
    path = tmp_path / "c.csv"

    result = RangeExporter(tracker, database).export(make_job(path, settings))

    assert not result.success
    assert result.last_stage == ProcessingStage.CONNECTION
    assert "Login failed" in result.error_message
    assert not result.incomplete
    assert not path.exists()


def test_read_failure_leaves_incomplete_file_and_warns(
        tmp_path, settings, tracker, make_database, read_csv, caplog
):
    database = make_database(columns=COLUMNS, rows=rows(10), fail_on_fetch=2)
    path = tmp_path / "c.csv"

    with caplog.at_level(logging.WARNING, logger="sqlcsv_export"):
        result = RangeExporter(tracker, database).export(make_job(path, settings))

    assert result.last_stage == ProcessingStage.READ
    assert result.incomplete
    assert result.batches == 1
    assert "connection reset" in result.error_message
    assert read_csv(path) == [["id", "name"], ["0", "name 0"], ["1", "name 1"]]
    assert "is incomplete" in caplog.text
    assert "is incomplete" in tracker.error_console.file.getvalue()
    assert database.cursors[0].closed
    assert database.connections[0].closed


def test_write_failure_is_reported(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(3))
    path = tmp_path / "missing-dir" / "c.csv"

    result = RangeExporter(tracker, database).export(make_job(path, settings))

    assert result.last_stage == ProcessingStage.WRITE
    assert not result.incomplete
    assert database.cursors[0].closed
    assert database.connections[0].closed


def test_progress_is_reported_per_batch(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(5))

    RangeExporter(tracker, database).export(make_job(tmp_path / "c.csv", settings))

    output = tracker.console.file.getvalue()
    assert "Batch 1: 2 rows (total 2)" in output
    assert "Batch 3: 1 rows (total 5)" in output
    assert "Exported 5 rows in 3 batches" in output


def test_unknown_locale_fails_before_connecting(tmp_path, settings, tracker, make_database):
    database = make_database(columns=COLUMNS, rows=rows(3))

    with pytest.raises(ExportValidationError):
        RangeExporter(tracker, database).export(make_job(tmp_path / "c.csv", settings, locale="zz-ZZ"))

    assert database.connections == []


@pytest.mark.parametrize("table, query", [(None, None), ("Customers", "SELECT 1"), ("", "")])
def test_exactly_one_of_table_or_query(settings, table, query):
    with pytest.raises(ExportValidationError):
        ExportJob.from_selector(output_path="out.csv", connection=settings, table=table, query=query)


def test_selector_builds_matching_source(settings):
    table_job = ExportJob.from_selector("t.csv", settings, table="Customers", schema="crm")
    query_job = ExportJob.from_selector("q.csv", settings, query="SELECT 1")

    assert table_job.source == TableSource(name="Customers", schema="crm")
    assert query_job.source == QuerySource(text="SELECT 1")


def test_batch_size_must_be_positive(settings):
    with pytest.raises(ExportValidationError):
        make_job("out.csv", settings, batch_size=0)
