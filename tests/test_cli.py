"""Tests for the command-line entry point."""

from cmdpipe.cli import build_parser, main


class TestMain:
    """Test non-interactive modes of main()."""

    def test_command(self, capsys):
        """Test -e runs one pipeline."""
        assert main(["-q", "-e", "echo hello | upper"]) == 0
        assert capsys.readouterr().out == "HELLO\n"

    def test_command_failure(self, capsys):
        """Test a failing pipeline sets the exit code."""
        assert main(["-q", "-e", "nope"]) == 1
        assert "Unrecognized command: nope" in capsys.readouterr().err

    def test_script(self, tmp_path, capsys):
        """Test --script runs every line."""
        script = tmp_path / "commands.txt"
        script.write_text("echo one\necho two | upper\n")
        assert main(["-q", "--script", str(script)]) == 0
        assert capsys.readouterr().out == "one\nTWO\n"

    def test_missing_script(self, tmp_path):
        assert main(["-q", "--script", str(tmp_path / "missing.txt")]) == 1

    def test_config(self, tmp_path, capsys):
        """Test the configured marker is used."""
        config = tmp_path / "cmdpipe.yaml"
        config.write_text("external_marker: '@'\n")
        assert main(["-q", "-c", str(config), "-e", "!ls"]) == 1
        assert "Unrecognized command: !ls" in capsys.readouterr().err

    def test_interactive(self, monkeypatch, capsys):
        """Test the read loop runs until end of input."""
        lines = iter(["echo hi | upper"])
        prompts = []

        def fake_input(prompt):
            prompts.append(prompt)
            try:
                return next(lines)
            except StopIteration:
                raise EOFError

        monkeypatch.setattr("builtins.input", fake_input)
        assert main(["-q", "--prompt", "$ "]) == 0
        assert capsys.readouterr().out == "HI\n\n"
        assert prompts == ["$ ", "$ "]

    def test_missing_config(self, tmp_path):
        assert main(["-q", "-c", str(tmp_path / "missing.yaml"), "-e", "echo hi"]) == 1


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.command is None
        assert args.script is None
        assert args.prompt is None
        assert not args.verbose
