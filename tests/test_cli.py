import textwrap
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest
from click.testing import CliRunner

from xmlstore.cli import cli

_BOOK_MODULE = """\
from dataclasses import dataclass


@dataclass
class Book:
    title: str = ""
    pages: int = 0
"""


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "cli_books.py").write_text(_BOOK_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("XMLSTORE_CONFIG", raising=False)
    return tmp_path


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _books_file(path: Path, body: str) -> Path:
    path.write_text(textwrap.dedent(body).strip(), encoding="utf-8")
    return path


def test_init(runner, workdir):
    result = runner.invoke(cli, ["init", "--dir", str(workdir)])
    assert result.exit_code == 0, result.output
    assert (workdir / "xmlstore.toml").exists()

    again = runner.invoke(cli, ["init", "--dir", str(workdir)])
    assert again.exit_code == 0
    assert "already exists" in again.output


def test_create(runner, workdir):
    result = runner.invoke(cli, ["create", "books.xml", "--type", "cli_books:Book"])
    assert result.exit_code == 0, result.output
    assert ET.parse(workdir / "books.xml").getroot().tag == "Books"


def test_create_refuses_overwrite_without_force(runner, workdir):
    (workdir / "books.xml").write_text("<Books />")
    result = runner.invoke(cli, ["create", "books.xml", "--type", "cli_books:Book"])
    assert result.exit_code != 0
    assert "--force" in result.output

    forced = runner.invoke(cli, ["create", "books.xml", "--type", "cli_books:Book", "--force"])
    assert forced.exit_code == 0, forced.output


def test_bad_type_spec(runner, workdir):
    for spec in ("cli_books", "cli_books:Missing", "no_such_module:Book"):
        result = runner.invoke(cli, ["create", "books.xml", "--type", spec])
        assert result.exit_code == 2, spec


def test_show(runner, workdir):
    _books_file(
        workdir / "books.xml",
        """
        <Books>
          <Book ID="b-1"><title>Dune</title><pages>412</pages></Book>
          <Book ID="b-2"><title>Emma</title><pages>474</pages></Book>
        </Books>
        """,
    )
    result = runner.invoke(cli, ["show", "books.xml"])
    assert result.exit_code == 0, result.output
    assert "Dune" in result.output
    assert "b-2" in result.output


def test_show_malformed(runner, workdir):
    (workdir / "books.xml").write_text("<Books>")
    result = runner.invoke(cli, ["show", "books.xml"])
    assert result.exit_code == 1
    assert "Cannot parse" in result.output


def test_check(runner, workdir):
    _books_file(
        workdir / "books.xml",
        """
        <Books>
          <Book ID="b-1"><title>Dune</title><pages>412</pages></Book>
          <Book ID="b-2"><title>Emma</title><pages>many</pages></Book>
        </Books>
        """,
    )
    result = runner.invoke(cli, ["check", "books.xml", "--type", "cli_books:Book"])
    assert result.exit_code == 1
    assert "1 ok, 1 failed" in result.output
    assert "'many'" in result.output


def test_delete_commits(runner, workdir):
    path = _books_file(
        workdir / "books.xml",
        """
        <Books>
          <Book ID="b-1"><title>Dune</title><pages>412</pages></Book>
          <Book ID="b-2"><title>Emma</title><pages>474</pages></Book>
        </Books>
        """,
    )
    result = runner.invoke(cli, ["delete", "books.xml", "b-1", "--type", "cli_books:Book"])
    assert result.exit_code == 0, result.output
    assert [n.get("ID") for n in ET.parse(path).getroot()] == ["b-2"]

    missing = runner.invoke(cli, ["delete", "books.xml", "b-1", "--type", "cli_books:Book"])
    assert missing.exit_code == 1
    assert "No Book with ID 'b-1'" in missing.output


def test_check_reports_duplicate_ids_only(runner, workdir):
    _books_file(
        workdir / "books.xml",
        """
        <Books>
          <Book ID="b-1"><title>Dune</title><pages>412</pages></Book>
          <Book><title>Untitled</title><pages>1</pages></Book>
        </Books>
        """,
    )
    clean = runner.invoke(cli, ["check", "books.xml", "--type", "cli_books:Book"])
    assert clean.exit_code == 0, clean.output
    assert "Warning" not in clean.output

    _books_file(
        workdir / "books.xml",
        """
        <Books>
          <Book ID="b-1"><title>Dune</title><pages>412</pages></Book>
          <Book ID="b-1"><title>Dune again</title><pages>412</pages></Book>
        </Books>
        """,
    )
    dup = runner.invoke(cli, ["check", "books.xml", "--type", "cli_books:Book"])
    assert dup.exit_code == 0, dup.output
    assert "duplicate IDs (first one wins): b-1" in dup.output
