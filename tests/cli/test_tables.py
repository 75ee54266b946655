"""Tests for the tables and show CLI commands."""

from typer.testing import CliRunner

from db_schema_sync.cli.main import app

runner = CliRunner()


def cli_args(schema_root, *command):
    return [
        "--root",
        str(schema_root),
        "--pattern",
        "**/*.def",
        "--regexp",
        r"(\w+)\.def$",
        *command,
    ]


def test_tables_lists_every_table(schema_root, write_schema, orders_table, customer_table):
    write_schema("sales.def", [orders_table])
    write_schema("crm/crm.def", [customer_table])

    result = runner.invoke(app, cli_args(schema_root, "tables"))

    assert result.exit_code == 0, result.output
    assert "Orders" in result.output
    assert "Customer" in result.output
    assert "2 tables in 2 namespaces" in result.output


def test_tables_filtered_by_namespace(schema_root, write_schema, orders_table, customer_table):
    write_schema("sales.def", [orders_table])
    write_schema("crm.def", [customer_table])

    result = runner.invoke(app, cli_args(schema_root, "tables", "--namespace", "CRM"))

    assert result.exit_code == 0, result.output
    assert "Customer" in result.output
    assert "Orders" not in result.output


def test_tables_empty(schema_root):
    result = runner.invoke(app, cli_args(schema_root, "tables"))

    assert result.exit_code == 0
    assert "No tables found" in result.output


def test_tables_reports_skipped_files(schema_root, write_schema):
    write_schema("broken.def", "not json")

    result = runner.invoke(app, cli_args(schema_root, "tables"))

    assert result.exit_code == 0
    assert "Skipped" in result.output


def test_tables_missing_root(tmp_path):
    result = runner.invoke(app, cli_args(tmp_path / "missing", "tables"))

    assert result.exit_code == 1
    assert "not a directory" in result.output


def test_invalid_regexp(schema_root):
    result = runner.invoke(app, ["--root", str(schema_root), "--regexp", "([bad", "tables"])
    assert result.exit_code == 1


def test_show_table(schema_root, write_schema, orders_table):
    write_schema("sales.def", [orders_table])

    result = runner.invoke(app, cli_args(schema_root, "show", "orders"))

    assert result.exit_code == 0, result.output
    assert "sales.Orders" in result.output
    assert "OrderId" in result.output
    assert "PK_Orders" in result.output


def test_show_missing_table(schema_root, write_schema, orders_table):
    write_schema("sales.def", [orders_table])

    result = runner.invoke(app, cli_args(schema_root, "show", "Invoice"))

    assert result.exit_code == 1
    assert "Table not found" in result.output
