"""
Tests for command-line parsing.
"""

import pytest

import cli
from cli import build_parser


class TestParser:
    """Tests for the argparse setup."""

    def test_demo_defaults_to_all(self):
        args = build_parser().parse_args(["demo"])
        assert args.command == "demo"
        assert args.scenario == "all"

    def test_demo_rejects_unknown_scenario(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["demo", "price-drop"])

    def test_serve_options(self):
        args = build_parser().parse_args(["serve", "--port", "9000", "--reload"])
        assert (args.host, args.port, args.reload) == ("127.0.0.1", 9000, True)

    def test_test_passes_arguments_through(self, monkeypatch):
        """Test that options after "test" reach pytest untouched."""
        seen = []
        monkeypatch.setattr(cli, "run_tests", lambda args: seen.append(args) or 0)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["test", "-k", "backpressure", "-x"])

        assert exc_info.value.code == 0
        assert seen == [["-k", "backpressure", "-x"]]
