import pytest

from ovenmenu.context import EditCache
from ovenmenu.keys import MenuCode
from ovenmenu.menus import (
    Item,
    Menu,
    MenuError,
    MenuSession,
    MenuSet,
    Status,
    retitle,
    status_line_text,
)


class FakeConsole:
    def __init__(self, keys=(), typed=""):
        self.keys = [ord(k) for k in keys]
        self.typed = typed
        self.writes = []
        self.opened = False
        self.closed = False

    def open(self):
        self.opened = True
        return self

    def close(self):
        self.closed = True

    def size(self):
        return 80, 24

    def clear(self):
        pass

    def clear_to_eol(self):
        pass

    def move(self, col, line):
        pass

    def write(self, text):
        self.writes.append((None, None, text))

    def write_at(self, col, line, text):
        self.writes.append((col, line, text))

    def flush(self):
        pass

    def raw(self):
        pass

    def key(self, period):
        if not self.keys:
            raise AssertionError("ran out of keys")
        return self.keys.pop(0)

    def read_string(self):
        return self.typed

    def show_help(self):
        pass


def title(text="Title"):
    return Item(text=text, text_start=0, text_end=len(text) - 1)


def simple_set(*extra_items, menu_id="aa", others=()):
    return MenuSet([Menu(menu_id, [title(), *extra_items]), *others])


def test_status_line_text_flags():
    text = status_line_text(True, True, True, True, 0, 9, 30)
    assert text.startswith("KEA")
    assert text.endswith("lines 1 to 10 out of 30")
    assert status_line_text(True, False, False, False, 0, 0, 1).startswith("P  ")
    assert status_line_text(False, True, False, False, 0, 0, 1)[0] == " "


def test_retitle_names_oven_and_short_host():
    menus = MenuSet([Menu("aa", [title("Oven Main Menu")])])
    assert retitle(menus, 1, "furnace.example.com")
    item = menus[0].items[0]
    assert item.text == "Oven Main Menu -- Meter cube (oven1v0) (running on furnace)"
    assert item.text_end == len(item.text) - 1


def test_retitle_leaves_other_menus():
    menus = MenuSet([Menu("bb", [title("Oven Main Menu")])])
    assert not retitle(menus, 0, "host")
    assert menus[0].items[0].text == "Oven Main Menu"


def test_goto_and_unknown_menu():
    session = MenuSession(simple_set(others=[Menu("zo", [title()])]))
    session.goto("zo")
    assert session.menu.id == "zo"
    with pytest.raises(MenuError):
        session.goto("xx")


def test_menu_needs_items():
    with pytest.raises(ValueError):
        Menu("aa", [])


def test_layout_keeps_cursor_on_screen():
    items = [Item(text=f"line {n}") for n in range(20)]
    session = MenuSession(simple_set(*items))
    session.context.nline = 100
    top, bot = session.layout(10)
    assert bot - top + 1 == 10 - 2
    assert top <= session.context.nline <= bot
    session.context.nline = 0
    top, _ = session.layout(10)
    assert session.context.nline == top


def test_update_item_with_repeated_item():
    repeated = Item(ntimes=lambda s: 3, output=lambda s, n: str(n))
    session = MenuSession(simple_set(repeated, Item(text="after")))
    total = session.menu.count_lines(session)
    assert total == 1 + 3 + 1
    session.context.nline = 3
    assert session.update_item() == (1, 2)
    session.context.nline = total - 1
    assert session.update_item() == (2, 0)


def test_scroll_and_cursor_codes():
    session = MenuSession(simple_set(*[Item(text="x") for _ in range(30)]))
    ctx = session.context
    ctx.mline = 5
    assert session.handle_code(MenuCode.SCR_U0, 10, 31, 6, 13) == (Status.NONE, True)
    assert ctx.mline == 0
    ctx.nline = 3
    assert session.handle_code(MenuCode.CUR_D, 10, 31, 1, 8) == (Status.NONE, False)
    assert ctx.nline == 4
    ctx.nline = 8
    status, done = session.handle_code(MenuCode.CUR_D, 10, 31, 1, 8)
    assert done and ctx.mline == 1


def test_unknown_code_reports():
    session = MenuSession(simple_set())
    assert session.handle_code(MenuCode.UNKNOWN, 24, 1, 1, 0) == (Status.NONE, False)
    assert "unrecognized key" in session.message


def test_cache_parameters():
    cache = EditCache({"a": 1})
    session = MenuSession(simple_set(), param_cache=cache)
    assert session.handle_code(MenuCode.CACHEP, 24, 1, 1, 0) == (Status.REFRESH, True)
    assert cache.cached and session.edit_parameters
    assert session.handle_code(MenuCode.CACHEP, 24, 1, 1, 0)[1] is False
    assert session.message == "\aparameter database is already cached"


def test_cache_refused_when_readonly():
    session = MenuSession(simple_set(), readonly=True, param_cache=EditCache({}))
    session.handle_code(MenuCode.CACHEP, 24, 1, 1, 0)
    assert session.message == "\aparameter database is readonly"
    assert not session.edit_parameters


def test_biparameter_cache_needs_parameter_editing():
    cache = EditCache({})
    session = MenuSession(simple_set(), bip_cache=cache)
    session.handle_code(MenuCode.CACHEB, 24, 1, 1, 0)
    assert session.message == "\aparameter editing not enabled"
    session.edit_parameters = True
    assert session.handle_code(MenuCode.CACHEB, 24, 1, 1, 0) == (Status.REFRESH, True)
    assert cache.cached and session.edit_biparameters


def test_write_parameters_goes_to_write_menu():
    session = MenuSession(simple_set(others=[Menu("zz", [title()])]))
    assert session.handle_code(MenuCode.WRITEP, 24, 1, 1, 0)[1] is False
    session.edit_parameters = True
    assert session.handle_code(MenuCode.WRITEP, 24, 1, 1, 0) == (Status.REPAINT, True)
    assert session.menu.id == "zz"
    assert len(session.contexts) == 2
    assert session.handle_code(MenuCode.RETURN, 24, 1, 1, 0) == (Status.REPAINT, True)
    assert session.menu.id == "aa"


def test_return_at_root():
    session = MenuSession(simple_set())
    assert session.handle_code(MenuCode.RETURN, 24, 1, 1, 0)[1] is False
    assert session.message == "\ano where to return to"


def test_goto_without_go_function():
    session = MenuSession(simple_set(Item(text="plain")), console=FakeConsole())
    session.context.nline = 1
    session.handle_code(MenuCode.GOTO, 24, 2, 1, 1)
    assert session.message == "\ano where to go to"


def test_go_executed_in_place_pops_context():
    calls = []
    item = Item(text="run", go=lambda s: calls.append(1) or False)
    session = MenuSession(simple_set(item), console=FakeConsole())
    session.context.nline = 1
    assert session.handle_code(MenuCode.GOTO, 24, 2, 1, 1) == (Status.NONE, False)
    assert session.message == "Executed"
    assert calls == [1] and len(session.contexts) == 1


def test_go_error_message():
    def go(session):
        raise MenuError("goto error")

    session = MenuSession(simple_set(Item(go=go)), console=FakeConsole())
    session.context.nline = 1
    session.handle_code(MenuCode.GOTO, 24, 2, 1, 1)
    assert session.message == "\agoto error"
    assert len(session.contexts) == 1


def test_goto_error_menu():
    session = MenuSession(simple_set(others=[Menu("er", [title()])]), console=FakeConsole())
    assert session.handle_code(MenuCode.GOERR, 24, 1, 1, 0) == (Status.REPAINT, True)
    assert session.menu.id == "er"


def test_enter_needs_editing_outside_cs():
    got = []
    item = Item(input=lambda s, text: got.append(text))
    console = FakeConsole(typed="42")
    session = MenuSession(simple_set(item), console=console)
    session.context.nline = 1
    assert session.handle_code(MenuCode.ENTER, 24, 2, 1, 1)[1] is False
    assert session.message == "\aparameter editing not enabled"
    session.edit_parameters = True
    assert session.handle_code(MenuCode.ENTER, 24, 2, 1, 1) == (Status.REFRESH, True)
    assert got == ["42"]


def test_enter_allowed_on_cs_menu_and_reports_errors():
    def bad(session, text):
        raise MenuError("Syntax error")

    session = MenuSession(simple_set(Item(input=bad), menu_id="cs"), console=FakeConsole("x"))
    session.context.nline = 1
    session.handle_code(MenuCode.ENTER, 24, 2, 1, 1)
    assert session.message == "\aSyntax error"


def test_toggle_can_ask_for_repaint():
    session = MenuSession(simple_set(Item(toggle=lambda s: True)), edit_parameters=True)
    session.context.nline = 1
    assert session.handle_code(MenuCode.ENTER, 24, 2, 1, 1) == (Status.REPAINT, True)


def test_run_draws_and_exits():
    outputs = []

    def output(session):
        outputs.append(1)
        return "123"

    items = [Item(text="Exit", text_start=2, text_end=5, go=lambda s: s.exit(),
                  output=output, func_start=10, func_end=13)]
    console = FakeConsole(keys="qn")
    session = MenuSession(simple_set(*items))
    session.run(console)
    assert console.opened and console.closed
    assert (1, 1, "Title") in console.writes
    assert (11, 2, "123") in console.writes
    assert len(outputs) == 2
    assert session.context.nmenu == -1