from __future__ import annotations

from unittest import mock

from event_agenda.database import bootstrap
from event_agenda.database.bootstrap import SCHEMA_PATH, iter_sql_statements

DB_CONFIG = {"host": "db", "port": 3307, "user": "u", "password": "p", "database": "agenda_test"}


def test_splitter_ignores_semicolons_inside_quotes():
    sql = "INSERT INTO t VALUES ('a;b'); SELECT \"x;y\";\nSELECT `odd;name` FROM t;  "

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'SELECT "x;y"',
        "SELECT `odd;name` FROM t",
    ]


def test_splitter_keeps_escaped_quotes_and_tail():
    sql = r"SELECT 'it\'s;fine'; SELECT 2"

    assert list(iter_sql_statements(sql)) == [r"SELECT 'it\'s;fine'", "SELECT 2"]


def test_bundled_schema_defines_tables_and_unique_indexes():
    sql = SCHEMA_PATH.read_text(encoding="utf-8")

    assert "CREATE TABLE IF NOT EXISTS agenda (" in sql
    assert "CREATE TABLE IF NOT EXISTS agenda_checkins (" in sql
    assert "UNIQUE KEY unique_agenda_item (day, item_index, is_parallel)" in sql
    assert "UNIQUE KEY unique_user_agenda_checkin (user_id, day, item_index, is_parallel)" in sql
    assert "KEY agenda_item_checkins (day, item_index, is_parallel)" in sql
    assert "KEY agenda_checkins_user_id (user_id)" in sql


def test_apply_schema_runs_table_statements_in_configured_database():
    conn = mock.MagicMock(name="conn")
    cur = conn.cursor.return_value

    with mock.patch.object(bootstrap.mysql.connector, "connect", return_value=conn) as connect:
        count = bootstrap.apply_schema(DB_CONFIG)

    executed = [c.args[0] for c in cur.execute.call_args_list]
    assert executed[0].startswith("CREATE DATABASE IF NOT EXISTS `agenda_test`")
    assert count == 2
    assert all(stmt.startswith("CREATE TABLE IF NOT EXISTS") for stmt in executed[1:])
    assert not any(stmt.startswith("USE") for stmt in executed)
    assert connect.call_args_list[-1].kwargs["database"] == "agenda_test"
    assert "database" not in connect.call_args_list[0].kwargs


def test_key_columns_compare_exactly():
    sql = SCHEMA_PATH.read_text(encoding="utf-8")

    assert sql.count("id CHAR(36) COLLATE utf8mb4_bin NOT NULL") == 2
    assert sql.count("day VARCHAR(64) COLLATE utf8mb4_bin NOT NULL") == 2
    assert "user_id VARCHAR(64) COLLATE utf8mb4_bin NOT NULL" in sql
