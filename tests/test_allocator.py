from bookrunner.allocator import set_runner


def test_first_of_each_family_gets_bare_prefix():
    runners = {}
    assert set_runner(runners, "https://example.com") == "req"
    assert set_runner(runners, "grpc://localhost:8080") == "greq"
    assert set_runner(runners, "mysql://root@localhost/test") == "db"
    assert runners == {
        "req": "https://example.com",
        "greq": "grpc://localhost:8080",
        "db": "mysql://root@localhost/test",
    }


def test_same_destination_reuses_key():
    runners = {}
    key = set_runner(runners, "http://example.com")
    assert set_runner(runners, "http://example.com") == key
    assert len(runners) == 1


def test_later_runners_are_numbered_from_two():
    runners = {}
    assert set_runner(runners, "http://a.example.com") == "req"
    assert set_runner(runners, "http://b.example.com") == "req2"
    assert set_runner(runners, "http://c.example.com") == "req3"
    assert set_runner(runners, "postgres://h/one") == "db"
    assert set_runner(runners, "postgres://h/two") == "db2"


def test_existing_key_is_never_overwritten():
    runners = {"req": {"endpoint": "http://configured.example.com"}}
    key = set_runner(runners, "http://new.example.com")
    assert key == "req2"
    assert runners["req"] == {"endpoint": "http://configured.example.com"}


def test_allocation_is_deterministic():
    a, b = {"db": "sqlite:///x.db"}, {"db": "sqlite:///x.db"}
    assert set_runner(a, "https://example.com") == set_runner(b, "https://example.com")
    assert a == b
