import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from collection.cli import main as cli

from .conftest import ADMIN, ALICE, ARTIST, BOB, CAROL, MALLORY

runner = CliRunner()


def invoke(state_file: Path, args: list):
    return runner.invoke(cli.app, ["--state-file", str(state_file)] + args)


def run_ok(state_file: Path, args: list) -> dict:
    result = invoke(state_file, args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COLLECTION_CALLER", raising=False)
    monkeypatch.delenv("COLLECTION_STATE_FILE", raising=False)


@pytest.fixture
def state(tmp_path: Path) -> Path:
    path = tmp_path / "state.json"
    run_ok(
        path,
        [
            "init",
            "--name", "Genesis",
            "--symbol", "GEN",
            "--max-supply", "3",
            "--owner", ADMIN,
            "--royalty-receiver", ARTIST,
            "--royalty-bps", "500",
            "--base", "ipfs://X/",
        ],
    )
    return path


def test_init_writes_state(state: Path) -> None:
    data = json.loads(state.read_text())
    assert data["max_supply"] == 3
    assert data["holders"] == []
    assert data["royalty"] == {"receiver": ARTIST, "bps": 500}


def test_init_refuses_overwrite(state: Path) -> None:
    result = invoke(state, ["init", "--name", "x"])
    assert result.exit_code == 1
    assert "state_exists" in result.output


def test_init_bad_config(tmp_path: Path) -> None:
    result = invoke(tmp_path / "s.json", ["init", "--name", "x", "--symbol", "X", "--max-supply", "0",
                                          "--owner", ADMIN, "--royalty-receiver", ARTIST])
    assert result.exit_code == 2
    assert "bad_config" in result.output


def test_issue_flow(state: Path) -> None:
    out = run_ok(state, ["issue", "--caller", ADMIN, "--to", ALICE])
    assert out["id"] == 1
    assert out["events"] == [{"topic": "Issued", "recipient": ALICE, "id": 1}]

    out = run_ok(state, ["issue-batch", "--caller", ADMIN, "--to", BOB, "--to", CAROL])
    assert (out["first_id"], out["last_id"]) == (2, 3)
    assert out["events"] == [
        {"topic": "BatchIssued", "recipients": [BOB, CAROL], "startId": 2, "count": 2}
    ]

    assert run_ok(state, ["uri", "3"])["uri"] == "ipfs://X/3.json"
    assert run_ok(state, ["owner-of", "2"])["holder"] == BOB
    assert run_ok(state, ["exists", "4"])["exists"] is False
    quote = run_ok(state, ["quote", "1", "--price", "1000"])
    assert (quote["receiver"], quote["amount"]) == (ARTIST, 50)

    shown = run_ok(state, ["show"])
    assert shown["issued"] == 3
    assert shown["remaining"] == 0


def test_supply_exhausted_exit_code(state: Path) -> None:
    run_ok(state, ["issue-batch", "--caller", ADMIN, "--to", ALICE, "--to", BOB, "--to", CAROL])
    result = invoke(state, ["issue", "--caller", ADMIN, "--to", ALICE])
    assert result.exit_code == 1
    assert "supply_exhausted" in result.output
    assert json.loads(state.read_text())["holders"] == [ALICE, BOB, CAROL]


def test_non_owner_rejected_and_state_unchanged(state: Path) -> None:
    before = state.read_text()
    for args in (
        ["issue", "--caller", MALLORY, "--to", MALLORY],
        ["set-base", "ipfs://evil/", "--caller", MALLORY],
        ["set-royalty", "--caller", MALLORY, "--receiver", MALLORY, "--bps", "10000"],
    ):
        result = invoke(state, args)
        assert result.exit_code == 1
        assert "unauthorized" in result.output
    assert state.read_text() == before


def test_empty_batch(state: Path) -> None:
    result = invoke(state, ["issue-batch", "--caller", ADMIN])
    assert result.exit_code == 1
    assert "empty_batch" in result.output


def test_reconfigure(state: Path) -> None:
    run_ok(state, ["issue", "--caller", ADMIN, "--to", ALICE])
    run_ok(state, ["set-base", "", "--caller", ADMIN])
    assert run_ok(state, ["uri", "1"])["uri"] == "1.json"

    out = run_ok(state, ["set-royalty", "--caller", ADMIN, "--receiver", BOB, "--bps", "1000"])
    assert out["royalty"] == {"receiver": BOB, "bps": 1000}
    result = invoke(state, ["set-royalty", "--caller", ADMIN, "--receiver", BOB, "--bps", "10001"])
    assert result.exit_code == 1
    assert "invalid_rate" in result.output
    assert run_ok(state, ["quote", "1", "--price", "50"])["amount"] == 5


def test_unknown_token_and_missing_state(state: Path, tmp_path: Path) -> None:
    result = invoke(state, ["uri", "1"])
    assert result.exit_code == 1
    assert "unknown_token" in result.output

    result = invoke(tmp_path / "nope.json", ["show"])
    assert result.exit_code == 1
    assert "no_state" in result.output


def test_init_from_config_file(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({
        "name": "Genesis",
        "symbol": "GEN",
        "max_supply": 2,
        "owner": ADMIN,
        "royalty_receiver": ARTIST,
    }))
    out = run_ok(tmp_path / "s.json", ["init", "--config", str(cfg)])
    assert out["max_supply"] == 2
    assert out["base_locator"] == ""
    assert out["royalty"]["bps"] == 0


@pytest.mark.parametrize("content", ["[1, 2, 3]", '"just a string"', "null"])
def test_non_object_state_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "state.json"
    path.write_text(content)
    result = invoke(path, ["show"])
    assert result.exit_code == 1
    assert "bad_state" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
