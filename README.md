# gitfame

`gitfame` reports how much of a git repository each person wrote. It lists the files of a revision with `git ls-tree` and runs `git blame --incremental` on each selected file. It then counts, for every author (or committer, on request):

- **lines**: lines of the file that blame assigns to the person;
- **commits**: distinct commits seen in the blame output, each credited once, to the first person it was seen with;
- **files**: files in which the person owns at least one line.

An empty file has no blame output. It is credited to the person named first in `git log --pretty=full` for that file. That is one file and, if the commit was not yet seen, one commit, with no lines.

The package also holds two helper modules:

- `gitfame.genericsum`: `minimum`, `sort_slice`, `maps_equal`, `slice_contains`, `merge_iterables` (drains several iterables concurrently, one thread each) and `is_hermitian_matrix`.
- `gitfame.externalsort`: `LineReader` / `LineWriter` (with `new_reader` / `new_writer`), `merge` and `sort`.

## Installation

```
pip install .
```

`git` must be installed and on your `PATH`.

## Command line

```
gitfame --repository path/to/repo --revision HEAD
```

| Option | Default | Meaning |
| --- | --- | --- |
| `--repository` | current directory | Path to the git repository |
| `--revision` | `HEAD` | Revision to inspect |
| `--order-by` | `lines` | Sort key: `lines`, `commits` or `files` |
| `--use-committer` | off | Count committers instead of authors |
| `--format` | `tabular` | `tabular`, `csv`, `json` or `json-lines` |
| `--extensions` | all | Extensions to keep, e.g. `.go,.md` |
| `--languages` | all | Language names to keep, matched case-insensitively, e.g. `go,markdown` |
| `--exclude` | none | Glob patterns of files to skip |
| `--restrict-to` | none | Glob patterns; a file must match at least one |
| `--languages-file` | `../../configs/language_extensions.json` | JSON file mapping languages to extensions |

The list options take comma-separated values and may also be given more than once.

Glob patterns are matched against the full path from the repository root. `*` and `?` do not match `/`, and `[...]` classes and `\` escapes are supported. A malformed pattern is an error.

Results are sorted in descending order by the chosen key. Ties are broken by the other two counts, also descending, and then by name in ascending order.

Output formats:

- `tabular`: the columns `Name Lines Commits Files`, padded to line up.
- `csv`: the same header and rows, with quoting where needed.
- `json`: one array of objects with `name`, `lines`, `commits` and `files`.
- `json-lines`: one such object per line.

If git fails, a pattern is malformed, the languages file cannot be read, or `--order-by` or `--format` has an unknown value, the error goes to standard error and the command exits with status 1.

Example:

```
gitfame --order-by commits --format json --extensions .py
```

### The languages file

`--languages` is resolved through a JSON file. The file holds a list of objects, each with a `name`, a `type` and a list of `extensions`:

```json
[{"name": "Python", "type": "programming", "extensions": [".py"]}]
```

No such file ships with the package. The default path is relative to the directory the command is run from, so pass `--languages-file` whenever you use `--languages`. If none of the named languages appear in the file, no language filtering is done.

## Library use

```python
from gitfame.fame import FameOptions, collect_stats, sort_stats, format_stats

options = FameOptions(repository=".", revision="HEAD", extensions=[".py"])
stats = sort_stats(collect_stats(options), "lines")
print(format_stats(stats, "csv"), end="")
```

`gitfame.fame` also exposes the building blocks:

- `parse_blame`: turns incremental blame text into `(person, commit, lines)` entries.
- `file_selected`: applies the filters.
- `load_languages` and `accepted_extensions`: read the languages file.
- `parse_person_log`, `person_type` and `person_type_log`.
- `main(argv=None)`: returns the exit status.

```python
from gitfame.externalsort import sort

with open("merged.txt", "w") as out:
    sort(out, "a.txt", "b.txt")
```

`sort` rewrites each input file with its own lines in sorted order. It then writes the lines of all inputs to the output stream, merged in ascending order. A file that cannot be opened raises `OSError`.

## Running the tests

```
pip install .[test]
pytest
```