"""Pytest configuration and fixtures."""

import duckdb
import pytest

from reportlayer.core.catalog import CatalogSnapshot, ModuleRecord
from reportlayer.core.context import ReportContext
from reportlayer.db.duckdb import DuckDBAdapter

SCHEMA = """
CREATE TABLE mdl_user (
    id INTEGER, username VARCHAR, firstname VARCHAR, lastname VARCHAR,
    email VARCHAR, idnumber VARCHAR, lastaccess BIGINT, deleted INTEGER
);
CREATE TABLE mdl_user_enrolments (
    id INTEGER, userid INTEGER, enrolid INTEGER, timestart BIGINT, timeend BIGINT, timecreated BIGINT
);
CREATE TABLE mdl_enrol (id INTEGER, courseid INTEGER, enrol VARCHAR, roleid INTEGER);
CREATE TABLE mdl_role (id INTEGER, shortname VARCHAR);
CREATE TABLE mdl_user_lastaccess (id INTEGER, userid INTEGER, courseid INTEGER, timeaccess BIGINT);
CREATE TABLE mdl_course (id INTEGER, fullname VARCHAR, shortname VARCHAR, idnumber VARCHAR, startdate BIGINT);
CREATE TABLE mdl_modules (id INTEGER, name VARCHAR, visible INTEGER);
CREATE TABLE mdl_course_modules (id INTEGER, course INTEGER, module INTEGER, instance INTEGER, visible INTEGER);
CREATE TABLE mdl_assign (id INTEGER, course INTEGER, name VARCHAR, duedate BIGINT);
CREATE TABLE mdl_forum (id INTEGER, course INTEGER, name VARCHAR);
CREATE TABLE mdl_local_ace_samples (id INTEGER, userid INTEGER, starttime BIGINT, endtime BIGINT, value INTEGER);
CREATE TABLE mdl_logstore_standard_log (id INTEGER, timecreated BIGINT, origin VARCHAR);
"""

DATA = """
INSERT INTO mdl_user VALUES
    (1, 'guest', 'Guest', 'User', 'guest@example.com', '', 0, 0),
    (2, 'ann', 'Ann', 'Smith', 'ann@example.com', 'A1', 1700000000, 0),
    (3, 'bob', 'Bob', 'Jones', 'bob@example.com', 'B2', 0, 0),
    (4, 'carol', 'Carol', 'White', 'carol@example.com', 'C3', 0, 1);
INSERT INTO mdl_course VALUES (2, 'Statistics 101', 'STAT101', 'S101', 1690000000);
INSERT INTO mdl_role VALUES (3, 'editingteacher'), (5, 'student');
INSERT INTO mdl_enrol VALUES (10, 2, 'manual', 5), (11, 2, 'self', 3);
INSERT INTO mdl_user_enrolments VALUES
    (100, 3, 10, 1690000000, 0, 1689990000),
    (101, 2, 11, 1690000000, 0, 1689990000);
INSERT INTO mdl_user_lastaccess VALUES (1, 2, 2, 1700000000);
INSERT INTO mdl_modules VALUES (1, 'assign', 1), (2, 'forum', 1), (3, 'quiz', 0);
INSERT INTO mdl_assign VALUES (7, 2, 'Essay one', 1700000000), (8, 3, 'Other course essay', 0);
INSERT INTO mdl_forum VALUES (9, 2, 'Announcements');
INSERT INTO mdl_course_modules VALUES
    (20, 2, 1, 7, 1),
    (21, 2, 2, 9, 1),
    (22, 3, 1, 8, 1);
INSERT INTO mdl_local_ace_samples VALUES (1, 3, 1690000000, 1690086400, 42), (2, 2, 1690000000, 1690086400, 0);
"""


@pytest.fixture
def catalog():
    """Catalog with two installed modules and one disabled one."""
    return CatalogSnapshot(
        modules=[
            ModuleRecord(id=1, name="assign"),
            ModuleRecord(id=2, name="forum"),
            ModuleRecord(id=3, name="quiz", visible=False),
        ]
    )


@pytest.fixture
def context(catalog):
    """Report context for course 2 viewed by user 2."""
    return ReportContext(user_id=2, course_id=2, catalog=catalog, table_prefix="mdl_")


def load_site(conn) -> None:
    for statement in (SCHEMA + DATA).split(";"):
        if statement.strip():
            conn.execute(statement)


@pytest.fixture
def site_db():
    """In-memory DuckDB database with a small site's tables and data."""
    adapter = DuckDBAdapter()
    load_site(adapter.raw_connection)
    yield adapter
    adapter.close()


@pytest.fixture
def site_db_file(tmp_path):
    """The same site stored in a DuckDB file."""
    path = tmp_path / "site.duckdb"
    conn = duckdb.connect(str(path))
    load_site(conn)
    conn.close()
    return path
