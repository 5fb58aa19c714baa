import csv
import io
import json
import subprocess
from unittest import mock

import pytest

from gitfame.fame import (
    FameOptions,
    Language,
    PersonInfo,
    accepted_extensions,
    collect_stats,
    file_selected,
    format_stats,
    load_languages,
    main,
    parse_blame,
    parse_person_log,
    person_type,
    person_type_log,
    sort_stats,
)

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40


def _header(sha, start, count, author, committer):
    return (
        f"{sha} {start} {start} {count}\n"
        f"author {author}\n"
        f"author-mail <{author.lower()}@example.com>\n"
        "author-time 1\n"
        "author-tz +0000\n"
        f"committer {committer}\n"
        f"committer-mail <{committer.lower()}@example.com>\n"
        "committer-time 1\n"
        "committer-tz +0000\n"
        "summary change\n"
    )


BLAME = (
    _header(SHA_A, 1, 2, "Alice", "Bob")
    + "filename a.py\n"
    + _header(SHA_B, 3, 1, "Carol", "Erin")
    + "filename a.py\n"
    + f"{SHA_A} 4 4 1\n"
    + "filename a.py\n"
)

LOG = (
    f"commit {SHA_C}\n"
    "Author: Dave <dave@example.com>\n"
    "Commit: Dave <dave@example.com>\n"
    "\n"
    "    empty file\n"
)

OUTPUTS = {
    ("ls-tree", "HEAD", "-r", "--full-name", "--name-only"): "a.py\nempty.txt\nb.md\n",
    ("blame", "--incremental", "HEAD", "--", "a.py"): BLAME,
    ("blame", "--incremental", "HEAD", "--", "empty.txt"): "",
    ("log", "--pretty=full", "HEAD", "--", "empty.txt"): LOG,
}


def _fake_run(outputs, returncode=0):
    calls = []

    def run(cmd, **kwargs):
        calls.append(tuple(cmd[1:]))
        out = outputs.get(tuple(cmd[1:]), "")
        return subprocess.CompletedProcess(
            cmd, returncode, stdout=out.encode(), stderr=b"fatal: bad revision"
        )

    return run, calls


def test_person_types():
    assert person_type(False) == "author"
    assert person_type(True) == "committer"
    assert person_type_log(False) == "Author"
    assert person_type_log(True) == "Commit"


def test_parse_person_log():
    assert parse_person_log("Author: Dave <dave@example.com>\n", False) == "Dave"
    assert parse_person_log("Commit: Dave Smith <dave@example.com>\n", True) == "Dave Smith"
    assert parse_person_log("Author: Dave <dave@example.com>", False) == ""
    assert parse_person_log("Author: Dave <dave@example.com>\n", True) == ""


def test_load_languages_and_accepted_extensions(tmp_path):
    path = tmp_path / "langs.json"
    path.write_text(
        json.dumps(
            [
                {"name": "Go", "type": "programming", "extensions": [".go"]},
                {"name": "Python", "type": "programming", "extensions": [".py", ".pyi"]},
            ]
        ),
        encoding="utf-8",
    )
    languages = load_languages(path)
    assert languages[1] == Language("Python", "programming", [".py", ".pyi"])
    assert accepted_extensions(languages, ["python"]) == {".py", ".pyi"}
    assert accepted_extensions(languages, ["PYTHON", "go"]) == {".py", ".pyi", ".go"}
    assert accepted_extensions(languages, []) == set()


def test_file_selected_exclude_does_not_cross_directories():
    options = FameOptions(exclude=["*.md"])
    assert file_selected("b.md", options, set()) is False
    assert file_selected("docs/b.md", options, set()) is True
    assert file_selected("a.py", options, set()) is True


def test_file_selected_restrict_and_extensions():
    options = FameOptions(restrict_to=["src/*", "main.?o"], extensions=[".go"])
    assert file_selected("src/x.go", options, set()) is True
    assert file_selected("main.go", options, set()) is True
    assert file_selected("other/x.go", options, set()) is False
    assert file_selected("src/x.py", options, set()) is False
    assert file_selected("src/x.py", FameOptions(), {".go"}) is False
    assert file_selected("src/x.go", FameOptions(), {".go"}) is True


def test_file_selected_character_class():
    options = FameOptions(restrict_to=["[a-c]*.py"])
    assert file_selected("b.py", options, set()) is True
    assert file_selected("d.py", options, set()) is False
    negated = FameOptions(exclude=["[^a]*"])
    assert file_selected("a.py", negated, set()) is True
    assert file_selected("z.py", negated, set()) is False


@pytest.mark.parametrize("pattern", ["[", "[]", "a\\", "[-a]"])
def test_file_selected_bad_pattern(pattern):
    with pytest.raises(ValueError):
        file_selected("a.py", FameOptions(exclude=[pattern]), set())


def test_parse_blame_author():
    assert parse_blame(BLAME, False) == [
        ("Alice", SHA_A, 2),
        ("Carol", SHA_B, 1),
        ("Carol", SHA_A, 1),
    ]


def test_parse_blame_committer():
    entries = parse_blame(BLAME, True)
    assert [person for person, _, _ in entries] == ["Bob", "Erin", "Erin"]
    assert sum(count for _, _, count in entries) == 4


def test_parse_blame_skips_block_without_person():
    text = f"{SHA_A} 1 1 3\nsummary x\nfilename a.py\n"
    assert parse_blame(text, False) == []


def test_collect_stats():
    run, calls = _fake_run(OUTPUTS)
    with mock.patch("gitfame.fame.subprocess.run", side_effect=run):
        stats = collect_stats(FameOptions(repository="repo", exclude=["*.md"]))
    by_name = {p.name: p for p in stats}
    assert by_name == {
        "Alice": PersonInfo("Alice", 2, 1, 1),
        "Carol": PersonInfo("Carol", 2, 1, 1),
        "Dave": PersonInfo("Dave", 0, 1, 1),
    }
    assert ("blame", "--incremental", "HEAD", "--", "b.md") not in calls


def test_collect_stats_git_failure():
    run, _ = _fake_run(OUTPUTS, returncode=128)
    with mock.patch("gitfame.fame.subprocess.run", side_effect=run):
        with pytest.raises(subprocess.CalledProcessError):
            collect_stats(FameOptions(repository="repo"))


def test_sort_stats_orders():
    stats = [
        PersonInfo("b", 5, 1, 1),
        PersonInfo("a", 5, 1, 1),
        PersonInfo("c", 1, 9, 2),
        PersonInfo("d", 2, 1, 7),
    ]
    assert [p.name for p in sort_stats(stats, "lines")] == ["a", "b", "d", "c"]
    assert [p.name for p in sort_stats(stats, "commits")] == ["c", "a", "b", "d"]
    assert [p.name for p in sort_stats(stats, "files")] == ["d", "c", "a", "b"]


def test_sort_stats_bad_order():
    with pytest.raises(ValueError):
        sort_stats([], "name")


def test_format_tabular():
    text = format_stats([PersonInfo("Alice", 10, 2, 3)], "tabular")
    assert text == "Name  Lines Commits Files\nAlice 10    2       3\n"


def test_format_csv():
    text = format_stats([PersonInfo("Alice", 10, 2, 3)], "csv")
    assert text == "Name,Lines,Commits,Files\nAlice,10,2,3\n"


def test_format_csv_quotes_round_trip():
    stats = [PersonInfo('Smith, "J"', 1, 2, 3), PersonInfo(" lead", 4, 5, 6)]
    rows = list(csv.reader(io.StringIO(format_stats(stats, "csv"))))
    assert rows[1] == ['Smith, "J"', "1", "2", "3"]
    assert rows[2] == [" lead", "4", "5", "6"]


def test_format_json_round_trip():
    stats = [PersonInfo("Alice <x>", 10, 2, 3), PersonInfo("Bob", 1, 1, 1)]
    text = format_stats(stats, "json")
    assert text.endswith("]\n")
    assert "<" not in text
    assert json.loads(text) == [
        {"name": "Alice <x>", "lines": 10, "commits": 2, "files": 3},
        {"name": "Bob", "lines": 1, "commits": 1, "files": 1},
    ]
    assert format_stats([], "json") == "[]\n"


def test_format_json_lines():
    stats = [PersonInfo("Alice", 10, 2, 3), PersonInfo("Bob", 1, 1, 1)]
    lines = format_stats(stats, "json-lines").splitlines()
    assert [json.loads(line)["name"] for line in lines] == ["Alice", "Bob"]


def test_format_bad_format():
    with pytest.raises(ValueError):
        format_stats([], "xml")


def test_main_json(capsys):
    run, _ = _fake_run(OUTPUTS)
    with mock.patch("gitfame.fame.subprocess.run", side_effect=run):
        status = main(["--repository", "repo", "--format", "json", "--exclude", "*.md"])
    assert status == 0
    data = json.loads(capsys.readouterr().out)
    assert [row["name"] for row in data] == ["Alice", "Carol", "Dave"]


def test_main_bad_format(capsys):
    run, _ = _fake_run(OUTPUTS)
    with mock.patch("gitfame.fame.subprocess.run", side_effect=run):
        status = main(["--repository", "repo", "--format", "xml"])
    assert status == 1
    assert "Wrong format flag" in capsys.readouterr().err


def test_main_git_failure(capsys):
    run, _ = _fake_run(OUTPUTS, returncode=128)
    with mock.patch("gitfame.fame.subprocess.run", side_effect=run):
        status = main(["--repository", "repo"])
    assert status == 1
    assert "bad revision" in capsys.readouterr().err