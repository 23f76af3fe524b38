"""Tests for pipeline splitting and stage resolution."""

import pytest

from cmdpipe.shell.builtins import default_registry
from cmdpipe.shell.errors import (
    ArgumentValidationError,
    EmptyCommandLineError,
    LexError,
    UnrecognizedCommandError,
)
from cmdpipe.shell.parser import (
    BuiltinStage,
    ExternalStage,
    PipelineParser,
    last_stage_offset,
    parse_pipeline,
    split_pipeline,
    tokenize,
)


class TestSplitPipeline:
    """Test quote-aware pipe splitting."""

    def test_no_pipe(self):
        """Test a line without pipes is a single stage."""
        assert split_pipeline("echo hello world") == ["echo hello world"]

    def test_empty_line(self):
        """Test an empty line is a single empty stage."""
        assert split_pipeline("") == [""]

    def test_simple_pipeline(self):
        """Test splitting on unquoted pipes keeps surrounding spaces."""
        assert split_pipeline("echo hi | upper | lower") == ["echo hi ", " upper ", " lower"]

    @pytest.mark.parametrize("line,count", [
        ("a", 1),
        ("a|b", 2),
        ("a | b | c", 3),
        ("|", 2),
        ("a||b", 3),
        ("a|", 2),
    ])
    def test_stage_count(self, line, count):
        """Test k unquoted pipes give k + 1 stages."""
        assert len(split_pipeline(line)) == count

    def test_pipe_in_double_quotes(self):
        """Test a pipe inside double quotes does not split."""
        assert split_pipeline('echo "a|b"') == ['echo "a|b"']

    def test_pipe_in_single_quotes(self):
        """Test a pipe inside single quotes does not split."""
        assert split_pipeline("echo 'a|b' | upper") == ["echo 'a|b' ", " upper"]

    def test_opposite_quote_is_inert(self):
        """Test an opposite quote inside a span neither closes nor reopens it."""
        assert split_pipeline('echo "it\'s | here"') == ['echo "it\'s | here"']
        assert split_pipeline("echo 'say \"hi' | upper") == ["echo 'say \"hi' ", " upper"]

    def test_unterminated_quote_never_fails(self):
        """Test an unterminated quote swallows the rest of the line."""
        assert split_pipeline('echo "abc | upper') == ['echo "abc | upper']

    def test_last_stage_offset(self):
        """Test offset of the last stage."""
        assert last_stage_offset("echo hi") == 0
        assert last_stage_offset("echo hi | up") == 9
        assert last_stage_offset('echo "a|b" | x') == 12


class TestTokenize:
    """Test shell-word tokenizing of a stage."""

    def test_quotes_and_escapes(self):
        """Test quoting and escaped whitespace."""
        assert tokenize('echo "a b" \'c d\' e\\ f') == ["echo", "a b", "c d", "e f"]

    def test_blank_stage(self):
        """Test a blank stage has no tokens."""
        assert tokenize("   ") == []

    def test_unterminated_quote(self):
        """Test unterminated quotes raise LexError carrying the stage."""
        with pytest.raises(LexError) as exc_info:
            tokenize('echo "abc')
        assert exc_info.value.stage == 'echo "abc'


class TestPipelineParser:
    """Test stage resolution."""

    @pytest.fixture
    def parser(self):
        return PipelineParser(default_registry())

    def test_builtin_stage(self, parser):
        """Test a registered command resolves with bound arguments."""
        stage = parser.resolve_stage("echo -n hello world")
        assert isinstance(stage, BuiltinStage)
        assert stage.name == "echo"
        assert stage.args.words == ["hello", "world"]
        assert stage.args.no_newline is True

    def test_external_stage_glued(self, parser):
        """Test marker glued to the program name."""
        stage = parser.resolve_stage("!ls -l /tmp")
        assert stage == ExternalStage(program="ls", args=["-l", "/tmp"])

    def test_external_stage_separate(self, parser):
        """Test marker as its own token."""
        stage = parser.resolve_stage("! ls -l")
        assert stage == ExternalStage(program="ls", args=["-l"])

    def test_external_skips_registry(self, parser):
        """Test external stages are not looked up in the registry."""
        stage = parser.resolve_stage("!echo hi")
        assert isinstance(stage, ExternalStage)
        assert stage.name == "echo"

    def test_marker_alone(self, parser):
        """Test marker without program name."""
        with pytest.raises(EmptyCommandLineError):
            parser.resolve_stage("  !  ")

    def test_custom_marker(self):
        """Test a configured marker."""
        parser = PipelineParser(default_registry(), external_marker="@")
        assert isinstance(parser.resolve_stage("@ls"), ExternalStage)
        with pytest.raises(UnrecognizedCommandError):
            parser.resolve_stage("!ls")

    def test_empty_stage(self, parser):
        """Test a trailing pipe yields an empty stage."""
        with pytest.raises(EmptyCommandLineError):
            parser.parse("echo hi |")

    def test_unrecognized_command(self, parser):
        """Test unknown names report the offending name."""
        with pytest.raises(UnrecognizedCommandError) as exc_info:
            parser.parse("echo hi | frobnicate --all")
        assert exc_info.value.name == "frobnicate"
        assert "frobnicate" in str(exc_info.value)

    def test_lex_error_in_later_stage(self, parser):
        """Test lexing failure in any stage aborts the line."""
        with pytest.raises(LexError):
            parser.parse("echo hi | echo 'unterminated")

    def test_argument_validation_error(self, parser):
        """Test missing arguments are reported with argparse's text."""
        with pytest.raises(ArgumentValidationError) as exc_info:
            parser.parse("buzz")
        assert "usage: buzz" in exc_info.value.message
        assert "the following arguments are required: MESSAGE" in exc_info.value.message
        assert exc_info.value.status == 2

    def test_help_is_reported_as_validation_error(self, parser):
        """Test --help raises instead of printing and exiting."""
        with pytest.raises(ArgumentValidationError) as exc_info:
            parser.parse("echo --help")
        assert "usage: echo" in exc_info.value.message
        assert exc_info.value.status == 0

    def test_parse_pipeline(self):
        """Test the convenience function."""
        pipeline = parse_pipeline('echo "a | b" | upper | !tr a-z A-Z', default_registry())
        assert len(pipeline) == 3
        assert [stage.name for stage in pipeline] == ["echo", "upper", "tr"]
        assert pipeline.stages[0].args.words == ["a | b"]
