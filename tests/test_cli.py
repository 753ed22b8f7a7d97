"""
cjdnsctl CLI Tests
"""

import json

import pytest

import cjdnsctl.main as cli
from cjdnsadmin.admin import (
    Session,
    NotRespondingError,
    AuthenticationRejectedError,
    NoCookieError,
)

from .conftest import FakeCjdroute, FakeTransport, TEST_PASSWORD, make_row


PAGES = [
    [
        make_row("fc00::a", "0000.0000.0000.0001", link=0),
        make_row("fc00::b", "4000.0000.0000.0000", link=500),
    ],
    [
        make_row("fc00::c", "4000.0000.0000.0001", link=1500),
    ],
]


@pytest.fixture
def run(tmp_path, monkeypatch):
    """Run cjdnsctl against a FakeCjdroute, returning (exit code, cjdroute)."""
    cjdroute = FakeCjdroute(pages=PAGES)

    def fake_connect(address, port, password, timeout=None):
        session = Session(FakeTransport(cjdroute.handle), address=address, port=port, password=password)
        session.cookie = cjdroute.cookie
        return session

    monkeypatch.setattr(cli, "connect", fake_connect)

    def invoke(*argv):
        base = ["-c", str(tmp_path / "none.toml"), "-P", TEST_PASSWORD]
        return cli.main(base + list(argv))

    invoke.cjdroute = cjdroute
    return invoke


def test_no_command(capsys, tmp_path):
    """Test a bare invocation prints help and fails."""
    assert cli.main(["-c", str(tmp_path / "none.toml")]) == 1


def test_routes(run, capsys):
    """Test the full routing table is printed."""
    assert run("routes") == 0

    out = capsys.readouterr().out
    assert "Routing Table (3 entries)" in out
    assert "4000.0000.0000.0001" in out


def test_routes_json(run, capsys):
    """Test JSON output with a hop filter."""
    assert run("routes", "--max-hops", "1", "--json") == 0

    routes = json.loads(capsys.readouterr().out)
    assert [r["ip"] for r in routes] == ["fc00::b", "fc00::c"]


def test_routes_max_link_only(run, capsys):
    """Test a link limit alone still filters."""
    assert run("routes", "--max-link", "1000", "--json") == 0

    routes = json.loads(capsys.readouterr().out)
    assert [r["ip"] for r in routes] == ["fc00::a", "fc00::b"]


def test_routes_single_page(run, capsys):
    """Test --page fetches one page."""
    assert run("routes", "--page", "1", "--json") == 0

    routes = json.loads(capsys.readouterr().out)
    assert [r["ip"] for r in routes] == ["fc00::c"]
    assert len(run.cjdroute.requests) == 1


def test_peers(run, capsys):
    """Test direct peers are listed without self."""
    assert run("peers") == 0

    out = capsys.readouterr().out
    assert "fc00::b" in out
    assert "fc00::c" in out
    assert "fc00::a" not in out


def test_peers_short(run, capsys):
    """Test truncated addresses."""
    assert run("peers", "--short") == 0

    lines = capsys.readouterr().out.splitlines()
    assert "b" in lines
    assert "c" in lines


def test_call(run, capsys):
    """Test a raw admin call."""
    assert run("call", "NodeStore_dumpTable", '{"page": 1}') == 0

    response = json.loads(capsys.readouterr().out)
    assert response["routingTable"][0]["ip"] == "fc00::c"


def test_call_error_response(run, capsys):
    """Test an error response fails."""
    assert run("call", "Unknown_function") == 1


def test_call_bad_args(run, capsys):
    """Test malformed JSON arguments are rejected before connecting."""
    assert run("call", "ping", "{not json") == 1
    assert run.cjdroute.requests == []


@pytest.mark.parametrize("raw_args", ['{"x": 1.5}', '{"x": null}'])
def test_call_unencodable_args(run, capsys, raw_args):
    """Test arguments bencode cannot carry are rejected before connecting."""
    assert run("call", "foo", raw_args) == 1
    assert "invalid arguments" in capsys.readouterr().err
    assert run.cjdroute.requests == []


@pytest.mark.parametrize("error,text", [
    (NotRespondingError("down"), "not responding"),
    (AuthenticationRejectedError("bad password"), "rejected the admin password"),
    (NoCookieError("no cookie"), "no cookie"),
])
def test_bootstrap_errors(monkeypatch, tmp_path, capsys, error, text):
    """Test each bootstrap failure has its own message."""
    def failing_connect(address, port, password, timeout=None):
        raise error

    monkeypatch.setattr(cli, "connect", failing_connect)

    assert cli.main(["-c", str(tmp_path / "none.toml"), "-P", "pw", "routes"]) == 1
    assert text in capsys.readouterr().err


def test_conf(tmp_path, capsys):
    """Test node identity display."""
    path = tmp_path / "cjdroute.conf"
    path.write_text(json.dumps({
        "publicKey": "z" * 51 + "1.k",
        "ipv6": "fc00::1",
        "admin": {"bind": "127.0.0.1:11234", "password": "x"},
        "authorizedPasswords": [{"password": "a"}],
    }))

    # Address does not match the key
    assert cli.main(["-c", str(tmp_path / "none.toml"), "-P", "pw", "conf", str(path)]) == 1

    out = capsys.readouterr().out
    assert "fc00::1" in out
    assert "1 authorized" in out
    assert "does NOT match" in out


def test_conf_missing(tmp_path, capsys):
    """Test a missing cjdroute.conf fails cleanly."""
    assert cli.main(["-c", str(tmp_path / "none.toml"), "-P", "pw", "conf", str(tmp_path / "nope")]) == 1
    assert "Error" in capsys.readouterr().err


def test_bad_config(tmp_path, capsys):
    """Test an invalid configuration file is reported."""
    path = tmp_path / "config.toml"
    path.write_text("[admin]\nport = 0\n")
    assert cli.main(["-c", str(path), "ping"]) == 1
    assert "Configuration error" in capsys.readouterr().err
