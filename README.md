# ovenmenu

`ovenmenu` holds the operator-side pieces of a furnace control system: a
cursor-driven menu console on curses, the fixed-length error log, daily
FITS data logs, and a generator that turns menu descriptor files into
menu tables and handler skeletons.

## Modules

- `ovenmenu.config`: `parse_args` reads the command-line options into an
  `OvenOptions` (`-o<n>` oven 0 or 1, `-c<n>` computer 0 to 2, `-M` for
  oven 1, `-nol...` to turn data logging off; values out of range are
  ignored). `is_pilot` tells whether the `USER` in the environment may
  write to the databases.
- `ovenmenu.context`: `ContextStack` of `MenuContext` records. `push`
  starts a new context that keeps the selected address; `pop` goes back
  and raises `ContextError` at the bottom of the stack. `EditCache` edits
  a copy of a database: `begin`, then `commit` (copies the edits back into
  the original in place) or `discard`. As a context manager it commits on
  success and discards on an exception.
- `ovenmenu.makemenus`: `make_menus` builds the generated text for one
  menu as a `MenuOutput` (`vc`, `ext`, `tc`); `main` is the command below.
- `ovenmenu.fitslog`: `log_data` stores one minute's readings in the
  day's `<prefix>YYMMDD.fits` file, one image row per minute of the day.
  `read_fits`, `write_fits` and `FitsImage` handle the two-dimensional
  32-bit float images; `log_name` and `minute_index` give the file name
  and the row.
- `ovenmenu.errorlog`: `format_error_line` builds a record of exactly 79
  characters, newline included, and cuts it to length when a field grows
  too large. `append_lines` appends records to `errors.log` while holding
  the `errors.lok` lock file. `ErrorLog` reads records by number and keeps
  track of the records already seen. `parse_error_target` gives the menu
  id and address a record points to.
- `ovenmenu.console`: `Console` draws on the terminal through curses.
  Positions count from 1. `key` returns `q` when the refresh period runs
  out with no key pressed. `show_help` shows the key list.
- `ovenmenu.keys`: `map_key` turns a key into a `MenuCode`.
  `next_menu_key` reads keys and skips the escape-sequence characters of
  arrow keys.
- `ovenmenu.menus`: `Item`, `Menu` and `MenuSet` describe the menus.
  `MenuSession` scrolls, moves the cursor, enters values and goes between
  menus. `MenuSession.run(console, period)` drives the display. `retitle`
  names the oven and host in the main menu title.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Generating menu tables

```
ovenmenu-makemenus menus/aa menus/zo menus/he
```

Each file is named after its menu id, which is the last part of its
path. Every line of the file is one menu item:

- A line `!name` makes the item before it repeat as many times as the
  function `<id>name` returns.
- `%name` marks a field with a go-to function. `$name` marks a field
  without one.
- After the field name, `?` adds input and output functions, `&` adds
  toggle and output functions, and `%` adds output only. `$` ends the
  field with no functions.

The command writes the menu table to `../menusm/menus.vc` and the handler
declarations to `../menusm/menus.ext`. It also writes one handler skeleton
file `<id>.tc` per menu in the current directory. It exits with status 1
or 2 when the first two files cannot be opened. It stops at the first
descriptor file it cannot read.

The same step works from Python on lines already in memory:

```python
from ovenmenu.makemenus import make_menus

output = make_menus("aa", ["Oven Main Menu", "  Zones    %zo%"])
print(output.vc)
```

## Working with the error log

```python
from ovenmenu.errorlog import ErrorLog, parse_error_target

log = ErrorLog()
if log.has_unseen():
    last = log.line(log.count() - 1)
    print(parse_error_target(last))
```

`ErrorLog.line` raises `IndexError` for a record that is not in the log.
`parse_error_target` raises `ValueError` when a record points nowhere.

## Logging readings

```python
from ovenmenu.fitslog import log_data, read_fits

path = log_data("ztmp", [1000.0, 1001.5, 998.2], directory="logs")
image = read_fits(path)
print(image.header["LASTCOL"])
```

A new file starts with every row set to `INDEF_VALUE`.

## Menu keys

Press `?` in the menu console for the list of keys. The main ones:

- `j` and `k` move the cursor.
- `n` opens the related menu and `p` returns to the previous one.
- `e` enters a value.
- `P` caches the parameters for editing and `W` goes to the write menu.
- `q` refreshes the page and `l` repaints it.

## What is not included

The package does not contain the menus themselves. A caller builds the
`MenuSet` and supplies the item functions, and no command starts the
console. The package also does not move databases to or from the oven
computers over the network. It does not store the databases on disk or
keep backups of them.