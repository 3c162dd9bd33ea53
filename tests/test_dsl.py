import pytest

from bookrunner.dsl import RunbookBuilder, build, runbook, step
from bookrunner.errors import DuplicateKey
from bookrunner.model import KeyedSteps, OrderedSteps


def test_step_helper():
    assert step("db", {"query": "SELECT 1"}, desc="ping") == {"desc": "ping", "db": {"query": "SELECT 1"}}


def test_functional_runbook_compiles():
    rb = runbook(
        "smoke",
        step("req", {"/": {"get": {"body": None}}}),
        step("exec", {"command": "true"}, test="current.exit_code == 0"),
        runners={"req": "https://example.com"},
        vars={"n": 1},
        loop=2,
    )
    book = rb.to_book()
    assert book.desc == "smoke"
    assert len(book.steps) == 2
    assert book.loop.count == "2"
    assert book.vars == {"n": 1}


def test_builder():
    rb = (
        build("captured")
        .with_runner("db", "postgres://localhost/app")
        .with_vars(user="alice")
        .capture("curl", "https://example.com/health")
        .define_step(step("db", {"query": "SELECT 1"}))
        .debug()
        .force()
        .skip_test()
        .interval("500ms")
        .when("vars.user != ''")
        .loop({"count": 3, "until": "true"})
        .concurrency("2")
        .build()
    )
    assert isinstance(rb.steps, OrderedSteps)
    assert rb.runners == {"db": "postgres://localhost/app", "req": "https://example.com"}
    assert rb.vars == {"user": "alice"}
    assert (rb.debug, rb.force, rb.skip_test) == (True, True, True)
    assert rb.interval == "500ms"
    assert rb.if_cond == "vars.user != ''"
    assert rb.concurrency == "2"
    assert rb.to_book().loop.until == "true"


def test_keyed_builder():
    rb = (
        RunbookBuilder("keyed")
        .keyed()
        .define_step(step("exec", {"command": "true"}), key="first")
        .capture("echo", "hi")
        .build()
    )
    assert isinstance(rb.steps, KeyedSteps)
    assert rb.step_keys == ["first", "echo1"]


def test_keyed_builder_rejects_duplicates_and_missing_keys():
    b = RunbookBuilder().keyed().define_step(step("exec", "true"), key="a")
    with pytest.raises(DuplicateKey):
        b.define_step(step("exec", "false"), key="a")
    with pytest.raises(ValueError):
        b.define_step(step("exec", "false"))


def test_ordered_builder_rejects_keys():
    with pytest.raises(ValueError):
        RunbookBuilder().define_step(step("exec", "true"), key="a")


def test_mode_must_be_chosen_first():
    b = RunbookBuilder().capture("ls")
    with pytest.raises(ValueError):
        b.keyed()
