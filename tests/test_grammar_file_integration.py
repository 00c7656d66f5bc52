import pytest

from flex2treetop.compiler.context import TranslationSettings
from flex2treetop.errors import FrontEndError, NodeShapeError, OverwriteRefusedError
from flex2treetop.host.grammar_file import (
    AUTOGENERATED_LINE,
    GrammarFileStatus,
    is_autogenerated,
    write_grammar_file,
)

LEXER = """%option noyywrap case-insensitive
DIGIT    [0-9]
ID       [a-z_][a-z0-9_]*
%%
"if"              { return IF; }
{DIGIT}{1,3}      { return NUMBER; }
{ID}              { return IDENTIFIER; }
"+"|"-"           { return SIGN; }
\\n                {/* LINE BREAK */}
.                 { yyerror("bad"); }
%%
int main() { return 0; }
"""

EXPECTED_GRAMMAR = AUTOGENERATED_LINE + """
module Flex
  grammar Lexer
    # from flex name definitions
    # declaration ignored: "noyywrap"
    rule DIGIT
      [0-9]
    end
    rule ID
      [a-zA-Z_] [a-zA-Z0-9_]*
    end
    # flex rules
    rule IF
      "if"
    end
    rule NUMBER
      DIGIT1..3
    end
    rule IDENTIFIER
      ID
    end
    rule SIGN
      "+" / "-"
    end
    rule LINE_BREAK
      "\\n"
    end
  end
end
"""

# ==============================================================================
# 1. Creating grammar files
# ==============================================================================

def test_create_grammar_file(write_flex, front_end, tmp_path):
    output = tmp_path / "lexer.treetop"
    result = write_grammar_file(
        write_flex(LEXER),
        output,
        front_end=front_end,
        settings=TranslationSettings(grammar="Flex::Lexer"),
    )

    assert result.status is GrammarFileStatus.CREATED
    assert result.output_path == output
    assert output.read_text(encoding="utf-8") == EXPECTED_GRAMMAR

    compiled = result.compiled
    assert compiled.source is None
    assert compiled.rules_emitted == 7
    assert compiled.rules_skipped == 1
    assert [notice.code for notice in compiled.notices] == ["unknown_declaration", "unresolved_action"]


def test_create_without_namespace(write_flex, front_end, tmp_path):
    output = tmp_path / "plain.treetop"
    write_grammar_file(write_flex('%%\n"a"|"b"   { return AB; }\n', "plain.l"), output, front_end=front_end)

    assert output.read_text(encoding="utf-8") == (
        AUTOGENERATED_LINE + "\n"
        "# flex rules\n"
        "rule AB\n"
        '  "a" / "b"\n'
        "end\n"
    )
    assert is_autogenerated(output)


def test_create_emits_lifecycle_events(write_flex, front_end, settings, events, tmp_path):
    output = tmp_path / "lexer.treetop"
    write_grammar_file(write_flex(LEXER), output, front_end=front_end, settings=settings)

    assert [event.event for event in events] == [
        "translation.start",
        "translation.end",
        "grammar_file.create",
    ]
    created = events[-1]
    assert created.success is True
    assert created.output_path == str(output)
    assert created.grammar == settings.grammar
    assert created.rules_emitted == 7
    assert created.notice_count == 2
    assert all(event.metadata == {"suite": "integration"} for event in events)

# ==============================================================================
# 2. Existing grammar files
# ==============================================================================

def test_existing_file_is_reused_without_force(write_flex, front_end, settings, events, tmp_path):
    output = tmp_path / "lexer.treetop"
    output.write_text("# hand written\nrule X\nend\n", encoding="utf-8")

    result = write_grammar_file(write_flex(LEXER), output, front_end=front_end, settings=settings)

    assert result.status is GrammarFileStatus.EXISTS
    assert result.compiled is None
    assert output.read_text(encoding="utf-8") == "# hand written\nrule X\nend\n"
    assert [event.event for event in events] == ["grammar_file.reuse"]


def test_force_regenerates_autogenerated_file(write_flex, front_end, settings, events, tmp_path):
    output = tmp_path / "lexer.treetop"
    write_grammar_file(write_flex(LEXER), output, front_end=front_end, settings=settings)

    flex_path = write_flex('%%\n"else"   { return ELSE; }\n')
    result = write_grammar_file(flex_path, output, front_end=front_end, settings=settings, force=True)

    assert result.status is GrammarFileStatus.REGENERATED
    content = output.read_text(encoding="utf-8")
    assert content.startswith(AUTOGENERATED_LINE + "\n")
    assert "rule ELSE" in content
    assert "rule IF" not in content
    assert events[-1].event == "grammar_file.regenerate"


def test_force_regenerates_empty_file(write_flex, front_end, tmp_path):
    output = tmp_path / "lexer.treetop"
    output.write_text("", encoding="utf-8")

    result = write_grammar_file(write_flex(LEXER), output, front_end=front_end, force=True)

    assert result.status is GrammarFileStatus.REGENERATED
    assert "rule IF" in output.read_text(encoding="utf-8")


def test_force_refuses_hand_written_file(write_flex, front_end, tmp_path):
    output = tmp_path / "lexer.treetop"
    output.write_text("# hand written\n", encoding="utf-8")

    with pytest.raises(OverwriteRefusedError) as excinfo:
        write_grammar_file(write_flex(LEXER), output, front_end=front_end, force=True)

    assert "autogenerated line" in str(excinfo.value)
    assert output.read_text(encoding="utf-8") == "# hand written\n"
    assert not is_autogenerated(output)

# ==============================================================================
# 3. Failures
# ==============================================================================

def test_front_end_failure_is_wrapped(write_flex, front_end, tmp_path):
    output = tmp_path / "broken.treetop"

    with pytest.raises(FrontEndError) as excinfo:
        write_grammar_file(write_flex('%%\n"unterminated   { return X; }\n'), output, front_end=front_end)

    assert "front-end failed: FlexSyntaxError" in str(excinfo.value)
    assert excinfo.value.__cause__ is not None
    assert not output.exists()


def test_shape_error_aborts_translation(write_flex, front_end, settings, events, tmp_path):
    output = tmp_path / "bad.treetop"

    with pytest.raises(NodeShapeError):
        write_grammar_file(write_flex('%%\na{}   { return A; }\n'), output, front_end=front_end, settings=settings)

    assert [event.event for event in events] == ["translation.start", "translation.end"]
    assert events[-1].success is False
    assert events[-1].error_type == "NodeShapeError"
    # the header is written before translation starts
    assert is_autogenerated(output)
