"""Integration tests running SQL templates against SQLite."""

import datetime
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import NamedTuple

import pytest

from sqltemplate import (
    JinjaSqlTemplate,
    JinjaTemplateEngine,
    MapParameterSource,
    PlainTextTemplateEngine,
    SqlTemplate,
    SqlTemplateConfig,
    TextFileTemplateEngine,
)
from sqltemplate.adapters.sqlite import SqliteConfig, SqliteExecutor
from sqltemplate.exceptions import (
    DataAccessError,
    MissingParameterError,
    MultipleResultsFoundError,
    ParameterError,
    ParameterStyleMismatchError,
    SQLFileNotFoundError,
)
from tests.models import Emp, EmpBean, EmpCriteria

pytestmark = pytest.mark.integration

JST = datetime.timezone(datetime.timedelta(hours=9))
SALESMEN = [7499, 7521, 7654, 7844]


@dataclass
class AuditEntry:
    message: str
    created_at: datetime.datetime


class DeptJob(NamedTuple):
    deptno: int
    job: str


@pytest.fixture
def text_template(sqlite_executor: SqliteExecutor, sql_dir: Path) -> SqlTemplate:
    return SqlTemplate(sqlite_executor, TextFileTemplateEngine(sql_dir))


@pytest.fixture
def jinja_template(sqlite_executor: SqliteExecutor, jinja_dir: Path) -> SqlTemplate:
    return SqlTemplate(sqlite_executor, JinjaTemplateEngine(jinja_dir))


@pytest.fixture
def plain_template(sqlite_executor: SqliteExecutor) -> SqlTemplate:
    return SqlTemplate(sqlite_executor, PlainTextTemplateEngine())


def test_jinja_template_with_mapping(jinja_template: SqlTemplate) -> None:
    """Test a single mapping renders the conditions and binds by name."""
    emps = jinja_template.for_list("selectByArgs.sql", Emp, {"deptno": 30, "job": "SALESMAN"})

    assert [e.empno for e in emps] == SALESMEN
    assert emps[0].ename == "ALLEN"
    assert emps[-1].empno == 7844


def test_jinja_template_with_keywords(jinja_template: SqlTemplate) -> None:
    """Test keyword arguments bind by name."""
    emps = jinja_template.for_list("selectByArgs.sql", Emp, deptno=30, job="SALESMAN")

    assert [e.empno for e in emps] == SALESMEN


def test_jinja_template_without_arguments(jinja_template: SqlTemplate) -> None:
    """Test no arguments render the unfiltered query."""
    emps = jinja_template.for_list("selectByArgs.sql", Emp)

    assert len(emps) == 14
    assert emps[0].empno == 7369
    assert emps[-1].empno == 7934


def test_jinja_template_with_bean(jinja_template: SqlTemplate) -> None:
    """Test a parameter object binds its accessor properties."""
    emps = jinja_template.for_list("selectByArgs.sql", Emp, EmpCriteria(30, "SALESMAN"))

    assert [e.empno for e in emps] == SALESMEN


def test_jinja_template_with_parameter_source(jinja_template: SqlTemplate) -> None:
    """Test a parameter source is used as given."""
    emps = jinja_template.for_list("selectByArgs.sql", Emp, MapParameterSource({"deptno": 10}))

    assert [e.empno for e in emps] == [7782, 7839, 7934]


def test_jinja_template_positional(jinja_template: SqlTemplate) -> None:
    """Test positional values render and bind through args."""
    emps = jinja_template.for_list("selectByArgsPositional.sql", Emp, 10)

    assert [e.empno for e in emps] == [7782, 7839, 7934]


def test_jinja_template_with_named_tuple(jinja_template: SqlTemplate) -> None:
    """Test a NamedTuple renders and binds its fields by name."""
    emps = jinja_template.for_list("selectByArgs.sql", Emp, DeptJob(30, "SALESMAN"))

    assert [e.empno for e in emps] == SALESMEN


def test_query_builder(jinja_template: SqlTemplate) -> None:
    """Test values added one by one bind by name."""
    emps = jinja_template.query("selectByArgs.sql", Emp).add("deptno", 10).add("job", "CLERK").for_list()

    assert [e.empno for e in emps] == [7934]
    assert jinja_template.query("selectByArgs.sql", Emp).add("job", "PRESIDENT").for_object() == Emp(
        empno=7839,
        ename="KING",
        job="PRESIDENT",
        hiredate=datetime.date(1981, 11, 17),
        sal=Decimal("5000"),
        deptno=10,
    )


def test_jinja_sql_template_default_engine(
    sqlite_executor: SqliteExecutor, jinja_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test JinjaSqlTemplate renders templates from the working directory."""
    monkeypatch.chdir(jinja_dir)

    template = JinjaSqlTemplate(sqlite_executor)

    assert len(template.for_list("selectByArgs.sql", Emp, deptno=20)) == 5


def test_for_object_by_scalar(text_template: SqlTemplate) -> None:
    """Test a single scalar binds positionally and maps to the result type."""
    emp = text_template.for_object("emp/selectById.sql", Emp, 7369)

    assert emp == Emp(
        empno=7369,
        ename="SMITH",
        job="CLERK",
        mgr=7902,
        hiredate=datetime.date(1980, 12, 17),
        sal=Decimal("800"),
        deptno=20,
    )


def test_for_object_no_rows(text_template: SqlTemplate) -> None:
    """Test no rows return None."""
    assert text_template.for_object("emp/selectById.sql", Emp, 1) is None


def test_for_object_many_rows(text_template: SqlTemplate) -> None:
    """Test more than one row raises MultipleResultsFoundError."""
    with pytest.raises(MultipleResultsFoundError):
        text_template.for_object("emp/selectAll.sql", Emp)


def test_several_positional_values(text_template: SqlTemplate) -> None:
    """Test several arguments bind by position in order."""
    emps = text_template.for_list("emp/selectByDeptnoAndJob.sql", Emp, 30, "SALESMAN")

    assert [e.empno for e in emps] == SALESMEN


def test_sequence_argument(text_template: SqlTemplate) -> None:
    """Test a single list binds its elements by position."""
    emps = text_template.for_list("emp/selectByDeptnoAndJob.sql", Emp, [30, "SALESMAN"])

    assert [e.empno for e in emps] == SALESMEN


def test_named_values(text_template: SqlTemplate) -> None:
    """Test named placeholders in a plain SQL file."""
    assert len(text_template.for_list("emp/selectByDeptno.sql", Emp, deptno=20)) == 5


def test_collection_expansion(text_template: SqlTemplate) -> None:
    """Test a list value fills an IN clause."""
    emps = text_template.for_list("emp/selectByJobs.sql", Emp, jobs=["CLERK", "ANALYST"])

    assert [e.empno for e in emps] == [7369, 7788, 7876, 7900, 7902, 7934]


def test_scalar_result(text_template: SqlTemplate) -> None:
    """Test a simple result type maps the single column."""
    assert text_template.for_object("emp/countAll.sql", int) == 14


def test_single_column_result_rejects_wide_rows(text_template: SqlTemplate) -> None:
    """Test a scalar result type over several columns fails."""
    with pytest.raises(DataAccessError, match="Incorrect column count"):
        text_template.for_list("emp/selectNames.sql", int, deptno=10)


def test_dict_and_tuple_results(text_template: SqlTemplate) -> None:
    """Test rows as dicts and tuples."""
    assert text_template.for_list("emp/selectNames.sql", tuple, deptno=10) == [
        (7782, "CLARK"),
        (7839, "KING"),
        (7934, "MILLER"),
    ]
    assert text_template.for_list("emp/selectNames.sql", deptno=10)[0] == {"empno": 7782, "ename": "CLARK"}


def test_bean_result(text_template: SqlTemplate) -> None:
    """Test plain classes are filled attribute by attribute."""
    beans = text_template.for_list("emp/selectNames.sql", EmpBean, deptno=10)

    assert [(b.empno, b.ename) for b in beans] == [(7782, "CLARK"), (7839, "KING"), (7934, "MILLER")]


def test_update(text_template: SqlTemplate) -> None:
    """Test update() returns the affected row count and changes are visible."""
    count = text_template.update("emp/updateSal.sql", sal=Decimal("999.50"), empno=7369)

    assert count == 1
    emp = text_template.for_object("emp/selectById.sql", Emp, 7369)
    assert emp is not None
    assert emp.sal == Decimal("999.5")


def test_keyword_called_name(plain_template: SqlTemplate) -> None:
    """Test a value bound as name= reaches the :name placeholder."""
    sql = "SELECT empno FROM emp WHERE ename = :name"

    assert plain_template.for_list(sql, None, name="KING") == [{"empno": 7839}]
    assert plain_template.for_object(sql, int, name="KING") == 7839
    assert plain_template.update("UPDATE emp SET sal = :sal WHERE ename = :name", sal=5100, name="KING") == 1
    assert plain_template.for_object("SELECT sal FROM emp WHERE ename = :name", Decimal, name="KING") == Decimal(
        "5100"
    )


def test_named_tuple_binds_by_name(plain_template: SqlTemplate) -> None:
    """Test a NamedTuple fills named placeholders from its fields."""
    sql = "SELECT empno FROM emp WHERE deptno = :deptno AND job = :job ORDER BY empno"

    assert plain_template.for_list(sql, int, DeptJob(30, "SALESMAN")) == SALESMEN


def test_update_without_matches(text_template: SqlTemplate) -> None:
    """Test update() returns 0 when no row matches."""
    assert text_template.update("emp/updateSal.sql", sal=1, empno=1) == 0


def test_aware_datetime_stored_in_zone(sqlite_executor: SqliteExecutor, sql_dir: Path) -> None:
    """Test aware date-times are stored as wall time of the reference zone."""
    template = SqlTemplate(sqlite_executor, TextFileTemplateEngine(sql_dir), zone=JST)

    template.update(
        "emp/insertAudit.sql",
        message="salary review",
        created_at=datetime.datetime(2024, 1, 1, 0, 0, tzinfo=datetime.timezone.utc),
    )

    assert template.for_list("emp/selectAudit.sql") == [
        {"message": "salary review", "created_at": "2024-01-01 09:00:00"}
    ]
    assert template.for_object("emp/selectAudit.sql", AuditEntry) == AuditEntry(
        "salary review", datetime.datetime(2024, 1, 1, 9, 0)
    )


def test_missing_named_value(text_template: SqlTemplate) -> None:
    """Test a named placeholder without a value is an error."""
    with pytest.raises(MissingParameterError, match="deptno"):
        text_template.for_list("emp/selectByDeptno.sql", Emp, job="CLERK")


def test_positional_value_for_named_placeholder(text_template: SqlTemplate) -> None:
    """Test positional values do not fill named placeholders."""
    with pytest.raises(ParameterStyleMismatchError):
        text_template.for_list("emp/selectByDeptno.sql", Emp, 10)


def test_mixed_arguments(text_template: SqlTemplate) -> None:
    """Test positional and keyword arguments cannot be mixed."""
    with pytest.raises(ParameterError):
        text_template.for_list("emp/selectByDeptno.sql", Emp, 10, deptno=10)


def test_missing_template(text_template: SqlTemplate) -> None:
    """Test an unknown template raises SQLFileNotFoundError."""
    with pytest.raises(SQLFileNotFoundError):
        text_template.for_list("emp/missing.sql", Emp)


def test_driver_error(sqlite_executor: SqliteExecutor) -> None:
    """Test driver failures raise DataAccessError."""
    template = SqlTemplate(sqlite_executor, PlainTextTemplateEngine())

    with pytest.raises(DataAccessError, match="no_such_table"):
        template.for_list("SELECT * FROM no_such_table")


def test_named_statements(sqlite_executor: SqliteExecutor, sql_dir: Path) -> None:
    """Test named statements loaded from SQL files."""
    config = SqlTemplateConfig(template_engine="named", named_sql_paths=[sql_dir / "queries"], render_named=True)
    template = config.create_sql_template(sqlite_executor)

    king = template.for_object("select-by-id", Emp, empno=7839)

    assert king is not None
    assert king.ename == "KING"
    assert template.for_object("count_by_deptno", int, deptno=20) == 5
    assert template.for_object("reports.total_salary", Decimal) == Decimal("29025")
    assert len(template.for_list("select_by_args", Emp, deptno=20)) == 5


def test_sqlite_config_executor(tmp_path: Path, sql_dir: Path) -> None:
    """Test a full round through a file database and the executor context."""
    config = SqliteConfig(connection_config={"database": str(tmp_path / "scott.db")})
    with config.provide_executor() as executor:
        executor.execute_script((sql_dir / "schema.sql").read_text(encoding="utf-8"))
        SqlTemplate(executor, TextFileTemplateEngine(sql_dir)).update("emp/updateSal.sql", sal=4000, empno=7839)

    with config.provide_executor() as executor:
        template = SqlTemplate(executor, TextFileTemplateEngine(sql_dir))
        king = template.for_object("emp/selectById.sql", Emp, 7839)

    assert king is not None
    assert king.sal == Decimal("4000")
