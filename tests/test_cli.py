"""Tests for the CLI."""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from chiptracker import cli
from chiptracker.ledger.models import create_session
from chiptracker.state.session_store import SaveResult

from tests.conftest import make_config


@pytest.fixture
def mock_backend():
    """Patch Redis and the snapshot store used by the CLI."""
    state = create_session(make_config(), tracker_id="friday")
    with patch("chiptracker.cli.redis_client") as mock_redis, \
            patch("chiptracker.cli.snapshot_store") as mock_store:
        mock_redis.connect = AsyncMock()
        mock_redis.disconnect = AsyncMock()
        mock_store.load_snapshot = AsyncMock(return_value=state)
        mock_store.save_snapshot = AsyncMock(return_value=SaveResult(acknowledged=True))
        yield state, mock_store


class TestParsing:
    """Test argument parsing helpers."""
    
    def test_plain_value_passes_through(self):
        assert cli.parse_chips_arg("1.5") == "1.5"
    
    def test_breakdown(self):
        assert cli.parse_chips_arg("white=3, red=2") == {"white": "3", "red": "2"}
    
    def test_bad_breakdown(self):
        with pytest.raises(cli.CommandError):
            cli.parse_chips_arg("white=")
    
    def test_participant_id(self):
        assert cli.parse_participant_id("3") == 3
        with pytest.raises(cli.CommandError):
            cli.parse_participant_id("alice")


class TestMain:
    """Test command dispatch."""
    
    def test_no_args_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1
        assert "Usage" in capsys.readouterr().out
    
    def test_unknown_command(self, capsys):
        with pytest.raises(SystemExit):
            cli.main(["launch"])
        assert "Unknown command: launch" in capsys.readouterr().out
    
    def test_wrong_arg_count(self, capsys):
        with pytest.raises(SystemExit):
            cli.main(["buyin", "friday"])
        assert "buyin <tracker>" in capsys.readouterr().out
    
    def test_add_saves_session(self, mock_backend, capsys):
        state, mock_store = mock_backend
        
        cli.main(["add", "friday", "alice", "100"])
        
        assert state.participants[0].name == "alice"
        assert state.participants[0].money_put_in == Decimal("100")
        mock_store.save_snapshot.assert_called_once_with(state)
        assert "alice: contribution of $100.00" in capsys.readouterr().out
    
    def test_validation_error_exits_without_saving(self, mock_backend, capsys):
        state, mock_store = mock_backend
        cli.main(["add", "friday", "alice", "100"])
        mock_store.save_snapshot.reset_mock()
        
        with pytest.raises(SystemExit):
            cli.main(["cashout", "friday", "0", "0"])
        
        mock_store.save_snapshot.assert_not_called()
        assert "Return must include at least one chip" in capsys.readouterr().out
    
    def test_unsaved_change_is_an_error(self, mock_backend, capsys):
        state, mock_store = mock_backend
        mock_store.save_snapshot.return_value = SaveResult(acknowledged=False, error_message="down")
        
        with pytest.raises(SystemExit):
            cli.main(["add", "friday", "alice", "100"])
        
        assert "not saved: down" in capsys.readouterr().out
    
    def test_settle(self, mock_backend, capsys):
        state, _ = mock_backend
        cli.main(["add", "friday", "A", "100"])
        cli.main(["add", "friday", "B", "100"])
        cli.main(["cashout", "friday", "0", "150"])
        cli.main(["cashout", "friday", "1", "50"])
        capsys.readouterr()
        
        cli.main(["settle", "friday"])
        
        out = capsys.readouterr().out
        assert "B pays:" in out
        assert "$50.00 to A" in out
    
    def test_missing_session(self, mock_backend, capsys):
        _, mock_store = mock_backend
        mock_store.load_snapshot.return_value = None
        
        with pytest.raises(SystemExit):
            cli.main(["show", "nope"])
        
        assert "No session found for 'nope'" in capsys.readouterr().out
    
    def test_new_rejects_negative_stack_value(self, mock_backend, capsys):
        _, mock_store = mock_backend
        
        with pytest.raises(SystemExit):
            cli.main(["new", "t", "-20", "20"])
        
        mock_store.save_snapshot.assert_not_called()
        assert "Stack value must be a non-negative number" in capsys.readouterr().out
