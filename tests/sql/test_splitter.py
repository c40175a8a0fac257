import pytest

from querysh.sql.splitter import (
    INTERACTIVE_TERMINATORS,
    Statement,
    StatementSplitter,
    Terminator,
    split_statements,
    squeeze,
)


def test_two_terminated_statements():
    result = split_statements("select 1; select 2;")

    assert result.complete == (Statement("select 1"), Statement("select 2"))
    assert result.partial == ""


def test_trailing_partial_statement_is_kept():
    result = split_statements("select 1;\nselect")

    assert result.complete == (Statement("select 1"),)
    assert result.partial == "select"


@pytest.mark.parametrize(
    "text",
    [
        "select 'a;b'",
        'select "odd;column" from t',
        "select 'it''s; fine'",
        "select 1 -- trailing; comment\n",
        "select /* ; */ 1",
        "select 'never closed;",
    ],
)
def test_terminators_inside_quotes_or_comments_do_not_split(text):
    result = split_statements(text)

    assert result.complete == ()
    assert result.partial == text.strip()


def test_statement_after_block_comment_and_escaped_quote():
    result = split_statements("select /* ; */ 'it''s' ; select 2;")

    assert [s.text for s in result.complete] == ["select /* ; */ 'it''s'", "select 2"]


def test_whitespace_only_input():
    result = split_statements("   \n\t ")

    assert result.complete == ()
    assert result.partial == ""


@pytest.mark.parametrize("text", [";", " ; ;\n;"])
def test_blank_statements_are_suppressed(text):
    result = split_statements(text)

    assert result.complete == ()
    assert result.partial == ""


def test_vertical_terminator_tags_statement():
    splitter = StatementSplitter(INTERACTIVE_TERMINATORS)

    result = splitter.split("select 1\\G select 2;")

    assert result.complete == (
        Statement("select 1", Terminator.VERTICAL),
        Statement("select 2", Terminator.SEMICOLON),
    )


def test_vertical_terminator_not_recognized_by_default():
    result = split_statements("select 1\\G")

    assert result.complete == ()
    assert result.partial == "select 1\\G"


def test_multi_line_statement_keeps_its_layout():
    result = split_statements("select\n  a,\n  b\nfrom t;\n")

    assert result.complete == (Statement("select\n  a,\n  b\nfrom t"),)


def test_splitter_requires_a_terminator():
    with pytest.raises(ValueError):
        StatementSplitter([])


def test_squeeze_collapses_whitespace():
    assert squeeze("select\n   1") == "select 1"
    assert squeeze("  select\t*\n\nfrom   t  ") == "select * from t"


@pytest.mark.parametrize(
    "text",
    ["select\n   1", "select 'a   b'\n from t", "select 1 -- note\n   from t", "  "],
)
def test_squeeze_is_idempotent(text):
    assert squeeze(squeeze(text)) == squeeze(text)


def test_squeeze_preserves_literals_and_comment_line_breaks():
    assert squeeze("select 'a   b'\n  from t") == "select 'a   b' from t"
    assert squeeze("select 1 -- note\n   from t") == "select 1 -- note\nfrom t"
