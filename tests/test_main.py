"""Tests for the command line entry point."""

import signal

import pytest

from screencast import main as cli
from screencast.models.region import CaptureRegion


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    """Run the CLI away from real config files and signal handlers."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("SCREENCAST_ADDRESS", raising=False)
    handlers = {}
    monkeypatch.setattr(signal, "signal", lambda signum, handler: handlers.setdefault(signum, handler))
    return handlers


class TestParser:
    """Tests for argument parsing."""

    def test_caster_with_region(self):
        args = cli.build_parser().parse_args(
            ["caster", "--address", "0.0.0.0:9000", "--region", "0,0,1280,720"]
        )
        assert args.mode == "caster"
        assert args.address == "0.0.0.0:9000"
        assert args.region == CaptureRegion(x=0, y=0, width=1280, height=720)

    def test_mode_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            cli.build_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_bad_region(self):
        with pytest.raises(SystemExit) as excinfo:
            cli.build_parser().parse_args(["caster", "--region", "0,0,-5,10"])
        assert excinfo.value.code == 2


class TestMain:
    """Tests for main()."""

    def test_bad_address_exits_2(self, isolated):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["receiver", "--address", "no-port"])
        assert excinfo.value.code == 2

    def test_receiver_without_caster_exits_1(self, isolated, free_port, capsys):
        code = cli.main(["receiver", "--address", f"127.0.0.1:{free_port}"])

        assert code == 1
        assert "Receiver error: Could not connect" in capsys.readouterr().err
        assert set(isolated) == {signal.SIGINT, signal.SIGTERM}

    def test_signal_stops_caster(self, isolated, free_port, monkeypatch):
        """Test SIGINT during a caster session gives a clean exit."""
        started = []
        original = cli.SessionController.start_caster

        def start_and_interrupt(controller, address, region=None):
            started.append(address)
            result = original(controller, address, region)
            isolated[signal.SIGINT](signal.SIGINT, None)
            return result

        monkeypatch.setattr(cli.SessionController, "start_caster", start_and_interrupt)
        monkeypatch.setattr(
            "screencast.stream.sender.MssCaptureSource",
            lambda monitor=1: _NoScreen(),
        )

        assert cli.main(["caster", "--address", f"127.0.0.1:{free_port}"]) == 0
        assert started == [f"127.0.0.1:{free_port}"]


class _NoScreen:
    def grab(self, region=None):
        raise AssertionError("nobody connected, nothing should be captured")

    def close(self):
        pass
