import pytest

from bookrunner.expand import expand_env, expand_yaml


def test_braced_and_bare_names():
    env = {"HOST": "example.com", "PORT": "8080"}
    assert expand_env("http://${HOST}:$PORT/", env) == "http://example.com:8080/"


def test_unset_names_are_left_alone():
    assert expand_env("${MISSING} $ALSO_MISSING", {}) == "${MISSING} $ALSO_MISSING"


def test_defaults():
    assert expand_env("${A:-fallback}", {}) == "fallback"
    assert expand_env("${A:-fallback}", {"A": ""}) == "fallback"
    assert expand_env("${A-fallback}", {"A": ""}) == ""
    assert expand_env("${A-fallback}", {"A": "set"}) == "set"


def test_double_dollar_escapes():
    assert expand_env("cost: $$5", {}) == "cost: $5"


# ---------------------------------------------------------------------
# inside YAML documents
# ---------------------------------------------------------------------

def test_yaml_plain_values_stay_plain():
    assert expand_yaml("port: $PORT\nhost: ${HOST}\n", {"PORT": "8080", "HOST": "h.example.com"}) == (
        "port: 8080\nhost: h.example.com\n"
    )


@pytest.mark.parametrize(
    "value,expected",
    [
        ("abc #123", 'token: "abc #123"\n'),
        ("a: b", 'token: "a: b"\n'),
        ("line1\nline2", 'token: "line1\\nline2"\n'),
        ("- item", 'token: "- item"\n'),
        ("*ref", 'token: "*ref"\n'),
    ],
)
def test_yaml_significant_values_are_quoted(value, expected):
    assert expand_yaml("token: $TOKEN\n", {"TOKEN": value}) == expected


def test_yaml_flow_context():
    assert expand_yaml("args: [$A, x]\n", {"A": "1,2"}) == 'args: ["1,2", x]\n'


def test_yaml_quoted_scalars_are_requoted():
    assert expand_yaml('k: "x $A"\n', {"A": 'say "hi"'}) == 'k: "x say \\"hi\\""\n'
    assert expand_yaml("k: 'it is $A'\n", {"A": "ok"}) == 'k: "it is ok"\n'


def test_yaml_block_scalar_keeps_indentation():
    text = "run: |\n  echo $MSG\n  done\n"
    assert expand_yaml(text, {"MSG": "a\nb"}) == "run: |\n  echo a\n  b\n  done\n"


def test_yaml_comments_and_unset_names_untouched():
    text = "# uses $A\nk: ${MISSING} # and $A\n"
    assert expand_yaml(text, {"A": "1"}) == text


def test_yaml_unscannable_text_is_returned_as_is():
    assert expand_yaml("k: '$A", {"A": "1"}) == "k: '$A"
