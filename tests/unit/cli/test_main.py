"""Unit tests for CLI command handling."""

from __future__ import annotations

from cli.main import main
from tests.fixture_paths import fixture_path


def _import_people(data_root) -> int:
    return main(
        [
            "--data-root",
            str(data_root),
            "import",
            str(fixture_path("people.csv")),
            "--dataset",
            "people",
            "--metadata",
            str(fixture_path("people_metadata.yaml")),
        ]
    )


def test_cli_import_prints_summary(tmp_path, capsys) -> None:
    """CLI import should print the dataset, row count and path."""
    exit_code = _import_people(tmp_path)
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert "dataset=people" in lines
    assert "rows=10" in lines
    assert "columns=5" in lines


def test_cli_import_reports_ambiguous_columns(tmp_path, capsys) -> None:
    """Inferred imports flag columns that need review."""
    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "import",
            str(fixture_path("ambiguous.csv")),
            "--dataset",
            "amb",
        ]
    )
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "ambiguous_column=flag" in output
    assert "ambiguous_column=score" in output


def test_cli_describe_prints_quartiles(tmp_path, capsys) -> None:
    """Describe prints one key=value line per statistic."""
    _import_people(tmp_path)
    capsys.readouterr()

    exit_code = main(["--data-root", str(tmp_path), "describe", "--dataset", "people", "--column", "age"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert "median=34" in lines
    assert "q1=30" in lines
    assert "undefined=distinct,mode" in lines


def test_cli_describe_writes_report(tmp_path, capsys) -> None:
    """Describe can also write a YAML report."""
    _import_people(tmp_path)
    report_path = tmp_path / "report.yaml"

    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "describe",
            "--dataset",
            "people",
            "--column",
            "city",
            "--report",
            str(report_path),
        ]
    )
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "frequency=Lisbon\t4\t" in output
    assert report_path.exists()


def test_cli_histogram_prints_fixed_grid(tmp_path, capsys) -> None:
    """Chart commands print exactly the requested grid."""
    _import_people(tmp_path)
    capsys.readouterr()

    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "histogram",
            "--dataset",
            "people",
            "--column",
            "age",
            "--buckets",
            "3",
            "--width",
            "12",
            "--height",
            "4",
            "--style",
            "ascii",
        ]
    )
    rows = capsys.readouterr().out.rstrip("\n").split("\n")

    assert exit_code == 0
    assert len(rows) == 4
    assert all(len(row) == 12 for row in rows)
    assert "#" in rows[-1]


def test_cli_row_and_verify(tmp_path, capsys) -> None:
    """Row prints raw cells and verify confirms alignment."""
    _import_people(tmp_path)
    capsys.readouterr()

    main(["--data-root", str(tmp_path), "row", "--dataset", "people", "2"])
    row_lines = capsys.readouterr().out.splitlines()
    exit_code = main(["--data-root", str(tmp_path), "verify", "--dataset", "people"])
    verify_lines = capsys.readouterr().out.splitlines()

    assert row_lines == ["name=Carol", "age=", "height=1.75", "active=yes", "city=Lisbon"]
    assert exit_code == 0
    assert verify_lines == ["rows=10", "status=ok"]


def test_cli_list_and_delete(tmp_path, capsys) -> None:
    """List shows imported datasets and delete removes them."""
    _import_people(tmp_path)
    capsys.readouterr()

    main(["--data-root", str(tmp_path), "list"])
    listed = capsys.readouterr().out.splitlines()
    main(["--data-root", str(tmp_path), "delete", "--dataset", "people"])
    capsys.readouterr()
    main(["--data-root", str(tmp_path), "list"])

    assert listed == ["people"]
    assert capsys.readouterr().out == ""


def test_cli_error_exits_with_message(tmp_path, capsys) -> None:
    """Failures print an actionable error and exit with status 1."""
    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "import",
            str(fixture_path("bad_integer.csv")),
            "--dataset",
            "bad",
            "--metadata",
            str(fixture_path("bad_integer_metadata.yaml")),
        ]
    )
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "error=" in captured.err
    assert "row 3" in captured.err
    assert captured.out == ""


def test_cli_header_flags_choose_the_first_row_role(tmp_path, capsys) -> None:
    """--header keeps the first row as names, detection reads it as data."""
    source = str(fixture_path("headerless.csv"))

    main(["--data-root", str(tmp_path), "import", source, "--dataset", "named", "--header"])
    named_lines = capsys.readouterr().out.splitlines()
    main(["--data-root", str(tmp_path), "import", source, "--dataset", "plain"])
    plain_lines = capsys.readouterr().out.splitlines()
    main(
        [
            "--data-root",
            str(tmp_path),
            "infer",
            source,
            "--dataset",
            "plain",
            "--output",
            str(tmp_path / "plain.yaml"),
            "--no-header",
        ]
    )
    infer_lines = capsys.readouterr().out.splitlines()

    assert "rows=2" in named_lines
    assert "rows=3" in plain_lines
    assert infer_lines[0].startswith("column_1\tinteger")
