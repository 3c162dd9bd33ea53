import click
import pytest

from bookrunner import areas
from bookrunner.areas import detect_runbook_areas, pick_step_yaml
from bookrunner.errors import IndexOutOfRange, LineOutOfRange
from bookrunner.model import Area, Areas

DOC = """\
desc: area test
vars:
  a: 1
  b: [x, y]
runners:
  req: https://example.com
steps:
  - db:
      query: SELECT 1
  - exec:
      command: |
        echo one
        echo two
    test: current.exit_code == 0
  -
    req:
      /health:
        get: null
"""

KEYED = """\
desc: keyed
steps:
  first:
    exec:
      command: echo 1
    desc: one
  second:
    db:
      query: SELECT 2
"""


def test_sections_and_ordered_steps():
    a = detect_runbook_areas(DOC)
    assert a.desc == Area(1, 1)
    assert a.vars == Area(2, 4)
    assert a.runners == Area(5, 6)
    assert a.steps == [Area(8, 9), Area(10, 14), Area(15, 18)]


def test_keyed_steps():
    a = detect_runbook_areas(KEYED)
    assert a.desc == Area(1, 1)
    assert a.runners is None
    assert a.steps == [Area(3, 6), Area(7, 9)]


def test_flow_steps():
    text = 'desc: flow\nsteps: [{db: {query: "SELECT 1"}}]\n'
    a = detect_runbook_areas(text)
    assert a.steps == [Area(2, 2)]
    with pytest.raises(IndexOutOfRange):
        pick_step_yaml(text, 1)


@pytest.mark.parametrize("text", ["steps: [\n", "- a\n- b\n", "", "just a scalar\n"])
def test_unusable_documents_give_no_areas(text):
    assert detect_runbook_areas(text) == Areas()


def test_pick_step_yaml():
    got = click.unstyle(pick_step_yaml(DOC, 0, environ={}))
    assert got == "8   - db:\n9       query: SELECT 1"


def test_pick_step_yaml_widens_line_numbers():
    got = click.unstyle(pick_step_yaml(DOC, 2, environ={}))
    assert got.split("\n") == [
        "15   -",
        "16     req:",
        "17       /health:",
        "18         get: null",
    ]


def test_pick_step_yaml_colors_line_numbers():
    got = pick_step_yaml(DOC, 0, environ={})
    assert got.startswith(click.style("8 ", fg="yellow"))


def test_pick_step_yaml_block_scalar():
    got = click.unstyle(pick_step_yaml(DOC, 1, environ={}))
    lines = got.split("\n")
    assert lines[0] == "10   - exec:"
    assert lines[-1] == "14     test: current.exit_code == 0"


def test_pick_step_yaml_interpolates_environment():
    text = "steps:\n  - exec:\n      command: echo ${WHO}\n"
    got = click.unstyle(pick_step_yaml(text, 0, environ={"WHO": "alice"}))
    assert got.split("\n")[-1] == "3       command: echo alice"


@pytest.mark.parametrize("idx", [-1, 3, 100])
def test_pick_step_yaml_index_out_of_range(idx):
    with pytest.raises(IndexOutOfRange) as exc:
        pick_step_yaml(DOC, idx, environ={})
    assert exc.value.count == 3


def test_pick_step_yaml_line_out_of_range(monkeypatch):
    monkeypatch.setattr(areas, "detect_runbook_areas", lambda text: Areas(steps=[Area(1, 99)]))
    with pytest.raises(LineOutOfRange) as exc:
        pick_step_yaml("steps:\n  - a: 1\n", 0, environ={})
    assert exc.value.line == 99


def test_multiline_environment_value_keeps_spans():
    text = (
        "vars:\n"
        "  msg: $MSG\n"
        "steps:\n"
        "  - exec:\n"
        "      command: echo $MSG\n"
        "  - exec:\n"
        "      command: ls\n"
    )
    env = {"MSG": "two\nlines # and: more"}
    assert detect_runbook_areas(text).steps == [Area(4, 5), Area(6, 7)]
    assert click.unstyle(pick_step_yaml(text, 0, environ=env)).split("\n") == [
        "4   - exec:",
        '5       command: "echo two\\nlines # and: more"',
    ]
    assert click.unstyle(pick_step_yaml(text, 1, environ=env)) == "6   - exec:\n7       command: ls"


def test_aliases_count_toward_their_step():
    text = (
        "vars:\n"
        "  c: &c {command: echo hi}\n"
        "steps:\n"
        "  - exec:\n"
        "      *c\n"
        "  - exec: *c\n"
    )
    a = detect_runbook_areas(text)
    assert a.vars == Area(1, 2)
    assert a.steps == [Area(4, 5), Area(6, 6)]


def test_step_that_is_only_an_alias():
    text = "vars:\n  s: &s {exec: {command: echo hi}}\nsteps:\n  - *s\n  - exec: {command: ls}\n"
    assert detect_runbook_areas(text).steps == [Area(4, 4), Area(5, 5)]
