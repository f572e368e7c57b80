"""Tests for the control-language parser."""

from __future__ import annotations

import pytest

from warden.dsl.nodes import ArrayLit, Assign, BinOp, Call, HashLit, If, Index, Literal, Name, StringInterp, UnaryOp
from warden.dsl.parser import parse_program
from warden.dsl.values import Symbol
from warden.exceptions import DslSyntaxError


def _single(source: str):
    program = parse_program(source, file="t.ctl")
    assert len(program.body) == 1
    return program.body[0]


def test_empty_source_has_no_statements() -> None:
    assert parse_program("", file="t.ctl").body == ()
    assert parse_program("\n# only a comment\n", file="t.ctl").body == ()


def test_bare_identifier_is_a_name() -> None:
    node = _single("describe")

    assert isinstance(node, Name)
    assert node.name == "describe"


def test_command_call_with_do_block() -> None:
    node = _single("describe true do\n  it { should eq true }\nend")

    assert isinstance(node, Call)
    assert node.name == "describe"
    assert node.args == (Literal(value=True, line=1, start=9, end=13),)
    assert node.block is not None
    inner = node.block.body[0]
    assert isinstance(inner, Call) and inner.name == "it"
    assert inner.block is not None


def test_nested_command_arguments() -> None:
    node = _single("should eq 'ubuntu'")

    assert isinstance(node, Call)
    matcher = node.args[0]
    assert isinstance(matcher, Call)
    assert matcher.name == "eq"
    assert isinstance(matcher.args[0], Literal)
    assert matcher.args[0].value == "ubuntu"


def test_do_block_binds_to_outer_command() -> None:
    node = _single("describe file('/etc/passwd') do\nend")

    assert node.name == "describe"
    assert node.block is not None
    argument = node.args[0]
    assert isinstance(argument, Call)
    assert argument.name == "file"
    assert argument.block is None


def test_brace_block_binds_to_outer_command() -> None:
    node = _single("describe os[:family] { it { should eq 'x' } }")

    assert node.block is not None
    assert isinstance(node.args[0], Index)
    assert node.args[0].key.value == Symbol("family")


def test_describe_one_is_a_method_call_on_describe() -> None:
    node = _single("describe.one do\nend")

    assert isinstance(node, Call)
    assert node.name == "one"
    assert isinstance(node.receiver, Name)
    assert node.receiver.name == "describe"
    assert node.block is not None


def test_method_chain_with_paren_arguments() -> None:
    node = _single("expect(os[:family]).to eq('ubuntu')")

    assert node.name == "to"
    assert isinstance(node.receiver, Call)
    assert node.receiver.name == "expect"
    assert node.args[0].name == "eq"


def test_trailing_labels_become_hash_argument() -> None:
    node = _single("tag 'cis', level: 1, 'nist' => 'ac-1'")

    assert len(node.args) == 2
    options = node.args[1]
    assert isinstance(options, HashLit)
    assert [key.value for key, _ in options.pairs] == [Symbol("level"), "nist"]


def test_assignment_and_compound_assignment() -> None:
    program = parse_program("x = 1\nx += 2", file="t.ctl")

    first, second = program.body
    assert isinstance(first, Assign)
    assert isinstance(second, Assign)
    assert isinstance(second.value, BinOp)
    assert second.value.op == "+"


def test_operator_precedence() -> None:
    node = _single("1 + 2 * 3 == 7 && !false")

    assert isinstance(node, BinOp) and node.op == "&&"
    assert isinstance(node.right, UnaryOp)
    comparison = node.left
    assert comparison.op == "=="
    assert comparison.left.op == "+"
    assert comparison.left.right.op == "*"


def test_negative_literal_folds() -> None:
    node = _single("impact -0.5")

    assert node.args[0] == Literal(value=-0.5, line=1, start=7, end=11)


def test_if_elsif_else() -> None:
    node = _single("if a\n  1\nelsif b\n  2\nelse\n  3\nend")

    assert isinstance(node, If)
    nested = node.else_body[0]
    assert isinstance(nested, If)
    assert nested.else_body[0].value == 3


def test_modifier_unless_negates_condition() -> None:
    node = _single("puts 'x' unless skip")

    assert isinstance(node, If)
    assert isinstance(node.condition, UnaryOp)
    assert node.condition.op == "!"


def test_interpolation_is_parsed() -> None:
    node = _single('"ssh-#{name.downcase}"')

    assert isinstance(node, StringInterp)
    assert node.parts[0] == "ssh-"
    assert isinstance(node.parts[1], Call)
    assert node.parts[1].name == "downcase"


def test_range_and_array_literals() -> None:
    program = parse_program("[1, 2,\n 3]\n1..3", file="t.ctl")

    array, span = program.body
    assert isinstance(array, ArrayLit)
    assert len(array.items) == 3
    assert isinstance(span, BinOp) and span.op == ".."


def test_block_parameters() -> None:
    node = _single("items.each_with_index { |item, index| puts item }")

    assert node.block is not None
    assert node.block.params == ("item", "index")


def test_node_offsets_cover_source_text() -> None:
    source = "x = 1\ncontrol 'a' do\n  impact 1\nend\n"
    node = parse_program(source, file="t.ctl").body[1]

    assert source[node.start : node.end] == "control 'a' do\n  impact 1\nend"
    assert node.line == 2


@pytest.mark.parametrize(
    ("source", "line"),
    [
        ("describe true do\n", 2),
        ("foo(1, 2", 1),
        ("x = = 1", 1),
        ("if true\n  1\n", 3),
    ],
    ids=["missing_end", "unclosed_paren", "double_assign", "unterminated_if"],
)
def test_parse_errors_report_file_and_line(source: str, line: int) -> None:
    with pytest.raises(DslSyntaxError) as excinfo:
        parse_program(source, file="bad.ctl")

    assert excinfo.value.file == "bad.ctl"
    assert excinfo.value.line == line


def test_regexp_literal_is_a_command_argument() -> None:
    node = _single("its('content') { should match /PermitRootLogin no/ }")

    assert node.block is not None
    should = node.block.body[0]
    matcher = should.args[0]
    assert isinstance(matcher, Call) and matcher.name == "match"
    assert isinstance(matcher.args[0], Literal)
    assert matcher.args[0].value.pattern == "PermitRootLogin no"
