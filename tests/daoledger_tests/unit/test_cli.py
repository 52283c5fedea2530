"""
Tests for the daoledger command-line interface.

Each test drives the CLI against a state file in tmp_path, the same way a
user chains commands in a shell.
"""

import json

import pytest
from click.testing import CliRunner

from daoledger.cli.main import cli
from daoledger.contracts.beacon import make_commitment
from daoledger.core.config import Config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def state_file(tmp_path):
    return str(tmp_path / "state.json")


@pytest.fixture
def invoke(runner, state_file):
    """Run one CLI command against the shared state file."""

    def _invoke(*args, caller=None, block=0, json_output=True):
        argv = ["--state", state_file, "--block", str(block)]
        if caller:
            argv += ["--caller", caller]
        if json_output:
            argv.append("--json-output")
        return runner.invoke(cli, argv + list(args), obj={})

    return _invoke


@pytest.fixture
def deployed(invoke):
    result = invoke("init", "root")
    assert result.exit_code == 0, result.output
    return invoke


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestInit:
    """Tests for the init command."""

    def test_init_creates_state_file(self, invoke, state_file, tmp_path):
        payload = _json(invoke("init", "root"))
        assert payload["owner"] == "root"
        assert (tmp_path / "state.json").exists()

    def test_init_twice_same_owner(self, deployed):
        assert deployed("init", "root").exit_code == 0

    def test_init_other_owner_fails(self, deployed):
        result = deployed("init", "mallory")
        assert result.exit_code == 1
        assert "already belongs" in result.output

    def test_commands_need_deployed_state(self, invoke):
        result = invoke("balance", "alice")
        assert result.exit_code == 1
        assert "no deployed contract" in result.output

    @pytest.mark.parametrize("snapshot", [
        "{not json",
        json.dumps({"version": 1, "entries": []}),
        json.dumps({
            "version": 1,
            "entries": {"beacon:random_number": {"record": "RandomNumberState", "data": []}},
        }),
    ])
    def test_corrupted_state_reported(self, invoke, tmp_path, snapshot):
        (tmp_path / "state.json").write_text(snapshot)

        result = invoke("balance", "alice")

        assert result.exit_code == 1
        assert not isinstance(result.exception, AttributeError)
        assert "Error:" in result.output


class TestLedgerCommands:
    """Tests for balance, mint and transfer."""

    def test_mint_and_balance(self, deployed):
        payload = _json(deployed("mint", "alice", "10", caller="root"))
        assert payload["balance"] == 10
        assert payload["events"] == []

        assert _json(deployed("balance", "alice"))["balance"] == 10

    def test_mint_by_non_owner(self, deployed):
        result = deployed("mint", "alice", "10", caller="alice")
        assert result.exit_code == 1
        assert "InsufficientPermission" in result.output

    def test_transfer_reports_event(self, deployed):
        deployed("mint", "alice", "10", caller="root")
        payload = _json(deployed("transfer", "bob", "4", caller="alice"))

        assert payload["events"] == [{
            "event": "BalanceTransfer",
            "from_account": "alice",
            "to_account": "bob",
            "amount": 4,
        }]
        assert _json(deployed("balance", "bob"))["balance"] == 4

    def test_transfer_insufficient(self, deployed):
        result = deployed("transfer", "bob", "1", caller="alice")
        assert result.exit_code == 1
        assert "InsufficientBalance" in result.output

    def test_state_changes_need_caller(self, deployed):
        result = deployed("transfer", "bob", "1")
        assert result.exit_code == 2
        assert "--caller" in result.output

    def test_negative_amount_rejected(self, deployed):
        result = deployed("mint", "alice", "-1", caller="root")
        assert result.exit_code == 2


class TestGovernanceCommands:
    """Tests for create-dao, create-proposal, vote and proposal."""

    def test_vote_flow(self, deployed):
        deployed("mint", "alice", "10", caller="root")
        dao = _json(deployed("create-dao", "alice", caller="alice", block=1))
        assert dao["dao_id"] == 1
        assert dao["events"] == [{"event": "DaoCreated", "dao_id": 1}]

        created = _json(deployed("create-proposal", "1", "Adopt charter", caller="alice", block=2))
        assert created["proposal_id"] == 1
        assert created["destroy_at"] == 1002

        voted = _json(deployed("vote", "1", "1", "favor", caller="alice", block=3))
        assert voted["balance"] == 8
        assert voted["events"] == [{"event": "VoteMade", "id": [1, 1], "is_in_favor": True}]

        again = deployed("vote", "1", "1", "against", caller="alice", block=4)
        assert again.exit_code == 1
        assert "VoteAlreadyMade" in again.output
        assert _json(deployed("balance", "alice"))["balance"] == 8

    def test_proposal_view(self, deployed):
        deployed("mint", "bob", "5", caller="root")
        deployed("create-dao", "bob", caller="bob")
        deployed("create-proposal", "1", "x", caller="bob", block=10)
        deployed("vote", "1", "1", "against", caller="bob", block=11)

        open_view = _json(deployed("proposal", "1", "1", block=1010))
        assert open_view["status"] == "open"
        assert open_view["votes_against"] == {"bob": 5}
        assert open_view["power_against"] == 5

        closed_view = _json(deployed("proposal", "1", "1", block=1011))
        assert closed_view["status"] == "closed"

    def test_proposal_missing(self, deployed):
        result = deployed("proposal", "1", "1")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_vote_side_must_be_known(self, deployed):
        result = deployed("vote", "1", "1", "abstain", caller="alice")
        assert result.exit_code == 2

    def test_proposal_on_missing_dao(self, deployed):
        result = deployed("create-proposal", "9", "x", caller="alice")
        assert result.exit_code == 1
        assert "NonExistentDao" in result.output


class TestBeaconCommands:
    """Tests for commit, reveal and the randomness commands."""

    def test_commit_reveal_random(self, deployed):
        committed = _json(deployed("commit", "42", caller="alice"))
        assert committed["commitment"] == make_commitment(42).hex()

        assert _json(deployed("random-value"))["random_value"] is None

        revealed = _json(deployed("reveal", "42", caller="alice"))
        assert revealed["events"] == [{"event": "ValueRevealed", "account": "alice", "value": 42}]
        assert isinstance(_json(deployed("random-value"))["random_value"], int)

    def test_submit_masked_value_hex(self, deployed):
        commitment = make_commitment(9).hex()
        _json(deployed("submit-masked-value", commitment, caller="bob"))
        assert deployed("reveal", "9", caller="bob").exit_code == 0

    def test_submit_masked_value_bad_hex(self, deployed):
        result = deployed("submit-masked-value", "zz", caller="bob")
        assert result.exit_code == 2

    def test_reveal_height(self, deployed):
        payload = _json(deployed("set-reveal-height", "50", caller="root"))
        assert payload["reveal_block_height"] == 50

        deployed("commit", "7", caller="alice", block=1)
        early = deployed("reveal", "7", caller="alice", block=49)
        assert early.exit_code == 1
        assert "InvalidRevealBlock" in early.output

        assert deployed("reveal", "7", caller="alice", block=50).exit_code == 0

    def test_reveal_survives_hash_setting_change(self, deployed, monkeypatch):
        deployed("commit", "42", caller="alice")

        monkeypatch.setattr(Config, "HASH_ALGORITHM", "sha3_256")
        result = deployed("reveal", "42", caller="alice")

        assert result.exit_code == 0, result.output

    def test_reveal_height_owner_only(self, deployed):
        result = deployed("set-reveal-height", "50", caller="alice")
        assert result.exit_code == 1
        assert "InsufficientPermission" in result.output


class TestTableOutput:
    """Tests for the default rich table output."""

    def test_balance_table(self, deployed):
        deployed("mint", "alice", "3", caller="root")
        result = deployed("balance", "alice", json_output=False)
        assert result.exit_code == 0
        assert "Balance" in result.output
        assert "alice" in result.output

    def test_event_lines(self, deployed):
        deployed("mint", "alice", "3", caller="root")
        result = deployed("transfer", "bob", "1", caller="alice", json_output=False)
        assert result.exit_code == 0
        assert "BalanceTransfer" in result.output
