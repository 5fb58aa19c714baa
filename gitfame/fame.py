"""Per-person line, commit and file statistics of a git repository."""

from __future__ import annotations

import argparse
import json
import logging
import os
import re
import subprocess
import sys
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field
from enum import Enum

_log = logging.getLogger(__name__)

_EMAIL = re.compile(r"<(.*)@(.*)>")
_CHANGE_LINE = re.compile(r"[0-9a-f]{40} [0-9]+ [0-9]+ [0-9]+\n")
_COMMIT_SHA = re.compile(r"[0-9a-f]{40}")

_DEFAULT_LANGUAGES_FILE = os.path.join("..", "..", "configs", "language_extensions.json")

_SORT_KEYS = {
    "lines": lambda p: (-p.lines, -p.commits, -p.files, p.name),
    "commits": lambda p: (-p.commits, -p.lines, -p.files, p.name),
    "files": lambda p: (-p.files, -p.lines, -p.commits, p.name),
}

_HEADER = ("Name", "Lines", "Commits", "Files")


class _Role(Enum):
    """Whose name a line or commit is credited to, with git's keywords for it."""

    AUTHOR = ("author", "Author")
    COMMITTER = ("committer", "Commit")

    @classmethod
    def of(cls, use_committer: bool) -> _Role:
        return cls.COMMITTER if use_committer else cls.AUTHOR

    @property
    def blame_keyword(self) -> str:
        return self.value[0]

    @property
    def log_header(self) -> str:
        return self.value[1]


@dataclass
class PersonInfo:
    """Statistics gathered for one author or committer."""

    name: str
    lines: int = 0
    commits: int = 0
    files: int = 0

    def row(self) -> tuple[str, str, str, str]:
        return (self.name, str(self.lines), str(self.commits), str(self.files))


@dataclass
class Language:
    """A programming language and the file extensions that belong to it."""

    name: str = ""
    type: str = ""
    extensions: list[str] = field(default_factory=list)


@dataclass
class FameOptions:
    """What to inspect in a repository and which files to take into account."""

    repository: str = "."
    revision: str = "HEAD"
    use_committer: bool = False
    extensions: Sequence[str] = ()
    languages: Sequence[str] = ()
    exclude: Sequence[str] = ()
    restrict_to: Sequence[str] = ()
    languages_file: str = _DEFAULT_LANGUAGES_FILE


def person_type(use_committer: bool) -> str:
    """Return the person keyword used in blame output."""
    return _Role.of(use_committer).blame_keyword


def person_type_log(use_committer: bool) -> str:
    """Return the person header used in ``git log --pretty=full`` output."""
    return _Role.of(use_committer).log_header


def parse_person_log(person_line: str, use_committer: bool) -> str:
    """Extract the name from a line like ``Author: Name <mail>\\n``.

    Returns an empty string when the line does not have that shape.
    """
    match = _EMAIL.search(person_line)
    email = match.group(0) if match else ""
    suffix = f" {email}\n"
    prefix = person_type_log(use_committer) + ": "
    if not person_line.endswith(suffix):
        return ""
    person = person_line[: len(person_line) - len(suffix)]
    if not person.startswith(prefix):
        return ""
    return person[len(prefix):]


def load_languages(path: str | os.PathLike[str]) -> list[Language]:
    """Read the list of languages from a JSON file."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    return [
        Language(
            name=entry.get("name", ""),
            type=entry.get("type", ""),
            extensions=list(entry.get("extensions") or []),
        )
        for entry in data
    ]


def accepted_extensions(languages: Iterable[Language], names: Iterable[str]) -> set[str]:
    """Return the extensions of the languages whose names are given, case-insensitively."""
    wanted = {name.lower() for name in names}
    if not wanted:
        return set()
    return {
        ext
        for language in languages
        if language.name.lower() in wanted
        for ext in language.extensions
    }


def _read_class_char(pattern: str, i: int) -> tuple[str, int]:
    if i >= len(pattern) or pattern[i] in "-]":
        raise ValueError("syntax error in pattern")
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            raise ValueError("syntax error in pattern")
    return pattern[i], i + 1


def _glob_regex(pattern: str) -> re.Pattern[str]:
    """Translate a path glob where ``*`` and ``?`` never match ``/``."""
    parts: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        if char == "*":
            parts.append("[^/]*")
            i += 1
        elif char == "?":
            parts.append("[^/]")
            i += 1
        elif char == "\\":
            if i + 1 >= n:
                raise ValueError("syntax error in pattern")
            parts.append(re.escape(pattern[i + 1]))
            i += 2
        elif char == "[":
            i += 1
            negate = i < n and pattern[i] == "^"
            if negate:
                i += 1
            ranges: list[str] = []
            count = 0
            while True:
                if i >= n:
                    raise ValueError("syntax error in pattern")
                if pattern[i] == "]" and count:
                    i += 1
                    break
                low, i = _read_class_char(pattern, i)
                high = low
                if i < n and pattern[i] == "-":
                    high, i = _read_class_char(pattern, i + 1)
                count += 1
                if low <= high:
                    ranges.append(f"{re.escape(low)}-{re.escape(high)}")
            body = "".join(ranges)
            if negate:
                parts.append(f"[^{body}]" if body else "[\\s\\S]")
            else:
                parts.append(f"[{body}]" if body else "(?!)")
        else:
            parts.append(re.escape(char))
            i += 1
    return re.compile("".join(parts), re.DOTALL)


def _path_match(pattern: str, name: str) -> bool:
    return _glob_regex(pattern).fullmatch(name) is not None


def _extension(file_name: str) -> str:
    base = file_name.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def file_selected(
    file_name: str, options: FameOptions, language_extensions: Iterable[str]
) -> bool:
    """Decide whether a file passes the exclude, restrict, extension and language filters.

    Raises ValueError for a malformed glob pattern.
    """
    excluded = any([_path_match(p, file_name) for p in options.exclude])
    restricted = [_path_match(p, file_name) for p in options.restrict_to]
    allowed = not restricted or any(restricted)

    ext = _extension(file_name)
    lang_exts = set(language_extensions)
    flag_exts = set(options.extensions)
    ext_by_language = not lang_exts or ext in lang_exts
    ext_by_flag = not flag_exts or ext in flag_exts

    return not excluded and allowed and ext_by_language and ext_by_flag


def parse_blame(text: str, use_committer: bool) -> list[tuple[str, str, int]]:
    """Parse ``git blame --incremental`` output into (person, commit, line count) entries.

    A block without its own person header is attributed to the last person seen.
    """
    person_re = re.compile(re.escape(person_type(use_committer)) + r"(.*)\n")
    entries: list[tuple[str, str, int]] = []
    last_person = ""
    for block in text.split("filename"):
        if not block.split():
            continue
        person_match = person_re.search(block)
        if person_match:
            _, _, last_person = person_match.group(0).removesuffix("\n").partition(" ")
        change = _CHANGE_LINE.search(block)
        if change is None:
            continue
        fields = change.group(0).removesuffix("\n").split(" ")
        if not last_person:
            _log.warning("blame block for %s has no %s", fields[0], person_type(use_committer))
            continue
        entries.append((last_person, fields[0], int(fields[3])))
    return entries


def _git(options: FameOptions, *args: str) -> str:
    cmd = ["git", *args]
    result = subprocess.run(cmd, cwd=options.repository, capture_output=True)
    if result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, cmd, output=result.stdout, stderr=result.stderr
        )
    return result.stdout.decode("utf-8", errors="replace")


def collect_stats(options: FameOptions) -> list[PersonInfo]:
    """Run git over every selected file of the revision and gather per-person statistics.

    Raises subprocess.CalledProcessError when git fails and ValueError for a bad pattern.
    """
    language_extensions: set[str] = set()
    if options.languages:
        language_extensions = accepted_extensions(
            load_languages(options.languages_file), options.languages
        )

    tree = _git(options, "ls-tree", options.revision, "-r", "--full-name", "--name-only")

    lines: defaultdict[str, int] = defaultdict(int)
    commits: dict[str, int] = {}
    files: defaultdict[str, int] = defaultdict(int)
    seen_commits: set[str] = set()

    def count_commit(sha: str, person: str) -> None:
        if sha not in seen_commits:
            seen_commits.add(sha)
            commits[person] = commits.get(person, 0) + 1

    for file_name in tree.split("\n"):
        if not file_name.split():
            continue
        if not file_selected(file_name, options, language_extensions):
            continue

        blame = _git(options, "blame", "--incremental", options.revision, "--", file_name)
        if not blame.split():
            log = _git(options, "log", "--pretty=full", options.revision, "--", file_name)
            sha_match = _COMMIT_SHA.search(log)
            person_match = re.search(person_type_log(options.use_committer) + r"(.)*\n", log)
            person = parse_person_log(
                person_match.group(0) if person_match else "", options.use_committer
            )
            if not person:
                continue
            files[person] += 1
            count_commit(sha_match.group(0) if sha_match else "", person)
            continue

        members: set[str] = set()
        for person, sha, amount in parse_blame(blame, options.use_committer):
            lines[person] += amount
            members.add(person)
            count_commit(sha, person)
        for person in members:
            files[person] += 1

    return [
        PersonInfo(person, lines[person], count, files[person])
        for person, count in commits.items()
    ]


def sort_stats(stats: Iterable[PersonInfo], order_by: str) -> list[PersonInfo]:
    """Order statistics by ``lines``, ``commits`` or ``files``, descending, then by name."""
    try:
        key = _SORT_KEYS[order_by]
    except KeyError:
        raise ValueError("Wrong order-by flag! Use --help to get usage information.") from None
    return sorted(stats, key=key)


def _tabular(rows: list[tuple[str, ...]]) -> str:
    widths = [max(len(row[col]) for row in rows) + 1 for col in range(len(_HEADER) - 1)]
    return "".join(
        "".join(cell.ljust(width) for cell, width in zip(row, widths)) + row[-1] + "\n"
        for row in rows
    )


def _csv_field(value: str) -> str:
    needs_quotes = value != "" and (
        value == "\\."
        or any(ch in value for ch in ',"\r\n')
        or value[0].isspace()
    )
    if not needs_quotes:
        return value
    return '"' + value.replace('"', '""') + '"'


def _json_object(person: PersonInfo) -> str:
    encoded = json.dumps(asdict(person), separators=(",", ":"), ensure_ascii=False)
    for char, escape in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        encoded = encoded.replace(char, escape)
    return encoded


def format_stats(stats: Sequence[PersonInfo], output_format: str) -> str:
    """Render statistics as ``tabular``, ``csv``, ``json`` or ``json-lines`` text."""
    if output_format == "tabular":
        return _tabular([_HEADER, *(person.row() for person in stats)])
    if output_format == "csv":
        return "".join(
            ",".join(_csv_field(value) for value in row) + "\n"
            for row in [_HEADER, *(person.row() for person in stats)]
        )
    if output_format == "json":
        return "[" + ",".join(_json_object(person) for person in stats) + "]\n"
    if output_format == "json-lines":
        return "".join(_json_object(person) + "\n" for person in stats)
    raise ValueError("Wrong format flag! Use --help to get usage information.")


def _split_list(values: list[str] | None) -> list[str]:
    return [item for value in values or [] for item in value.split(",") if item]


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitfame", description="Gitfame calculates repository statistics"
    )
    parser.add_argument("--repository", default=os.getcwd(), help="Path to git repository")
    parser.add_argument("--revision", default="HEAD", help="Commit pointer")
    parser.add_argument("--order-by", default="lines", help="Type of sort applied to result")
    parser.add_argument(
        "--use-committer", action="store_true", help="Replace author with committer"
    )
    parser.add_argument("--format", default="tabular", help="Type of output")
    parser.add_argument("--extensions", action="append", help="Extensions considered")
    parser.add_argument("--languages", action="append", help="Accepted languages")
    parser.add_argument("--exclude", action="append", help="Excluded glob patterns")
    parser.add_argument(
        "--restrict-to", action="append", help="Patterns of which at least one must match"
    )
    parser.add_argument(
        "--languages-file",
        default=_DEFAULT_LANGUAGES_FILE,
        help="JSON file listing languages and their extensions",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool and return its exit status."""
    args = _parser().parse_args(argv)
    options = FameOptions(
        repository=args.repository,
        revision=args.revision,
        use_committer=args.use_committer,
        extensions=_split_list(args.extensions),
        languages=_split_list(args.languages),
        exclude=_split_list(args.exclude),
        restrict_to=_split_list(args.restrict_to),
        languages_file=args.languages_file,
    )
    try:
        stats = collect_stats(options)
        text = format_stats(sort_stats(stats, args.order_by), args.format)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or b"").decode("utf-8", errors="replace").strip()
        print(detail or str(exc), file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1
    sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())