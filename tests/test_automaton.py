import io

import pytest

from pda_parser import (
    EMPTY,
    IncompleteDerivationError,
    LexicalAnalyzer,
    NoProductionError,
    Nonterminal,
    NonterminalSymbol,
    PushdownAutomaton,
    StreamTraceObserver,
    Terminal,
    TerminalMismatchError,
    TerminalSymbol,
    TraceObserver,
    TransitionTable,
    UnknownInputSymbolError,
    parse,
)


class RecordingObserver(TraceObserver):
    def __init__(self):
        self.steps = []

    def observe(self, step):
        self.steps.append(step)


@pytest.mark.parametrize("text", [
    "a", "b", "c", "a-b", "a*b", "a-b*c", "a*(b-c)", "(a)", "(a-b)", "((a))",
    "a-b-c", "a*b*c", "(a*b)-(c-a)*b",
])
def test_accepts_expressions(text):
    result = parse(text)
    assert result.success
    assert result.error is None
    assert result.error_position == -1


@pytest.mark.parametrize("text", ["(a", ")a", "-a", "", "ab", "a-", "a*", "()", "a)", "(a))"])
def test_rejects_malformed_expressions(text):
    result = parse(text)
    assert not result.success
    assert result.error is not None


def test_unknown_symbol_is_reported_with_position():
    result = parse("a+b")
    assert isinstance(result.error, UnknownInputSymbolError)
    assert result.error.char == "+"
    assert result.error_position == 1
    assert result.error_type == "unknown_symbol"
    assert result.trace == []


@pytest.mark.parametrize("text, char", [("a$", "$"), ("a b", " "), ("x", "x"), ("(a)\n", "\n")])
def test_characters_outside_alphabet_are_unknown(text, char):
    result = parse(text)
    assert isinstance(result.error, UnknownInputSymbolError)
    assert result.error.char == char


def test_leading_operator_has_no_production():
    result = parse("-a")
    error = result.error
    assert isinstance(error, NoProductionError)
    assert error.state is Nonterminal.A
    assert error.terminal is Terminal.MINUS
    assert error.position == 0
    # Only the initial configuration was recorded
    assert len(result.trace) == 1


def test_empty_input_has_no_production_on_sentinel():
    error = parse("").error
    assert isinstance(error, NoProductionError)
    assert error.state is Nonterminal.A
    assert error.terminal is Terminal.END


def test_closing_bracket_first_has_no_production():
    error = parse(")a").error
    assert isinstance(error, NoProductionError)
    assert error.terminal is Terminal.RPAREN


def test_unclosed_bracket_is_a_mismatch_on_sentinel():
    error = parse("(a").error
    assert isinstance(error, TerminalMismatchError)
    assert error.expected is Terminal.RPAREN
    assert error.found is Terminal.END
    assert error.position == 2


def test_missing_operand_reports_state_and_lookahead():
    error = parse("a-").error
    assert isinstance(error, NoProductionError)
    assert error.state is Nonterminal.B
    assert error.terminal is Terminal.END
    assert error.position == 2


def test_trace_of_single_identifier():
    result = parse("a")
    stacks = [step.stack_text for step in result.trace]
    inputs = [step.remaining_input for step in result.trace]
    assert stacks == [
        "$<A>", "$<D><B>", "$<D><E><C>", "$<D><E>a", "$<D><E>",
        "$<D>", "$<D>", "$", "$", "",
    ]
    assert inputs == ["a$"] * 4 + ["$"] * 5 + [""]
    assert [step.step_number for step in result.trace] == list(range(10))
    assert result.trace[0].action == "start"
    assert result.trace[1].action == "expand <A> -> <B><D>"
    assert result.trace[4].action == "match a"
    assert result.trace[5].action == "expand <E> -> ε"
    assert result.trace[6].action == "skip ε"
    assert result.trace[-1].action == "match $"


def test_epsilon_stays_on_stack_until_popped():
    step = parse("a").trace[5]
    assert step.stack[-1] == EMPTY


def test_acceptance_leaves_stack_and_input_empty():
    automaton = PushdownAutomaton("a*(b-c)")
    result = automaton.parse()
    assert result.success
    assert automaton.stack == []
    assert automaton.remaining_text == ""
    assert result.trace[-1].stack == ()


def test_parse_is_deterministic():
    first = parse("a*(b-c)-a")
    second = parse("a*(b-c)-a")
    assert first.trace == second.trace
    assert first.success == second.success


def test_parse_result_is_cached_per_automaton():
    automaton = PushdownAutomaton("a-b")
    assert automaton.parse() is automaton.parse()


def test_analyze_raises_rejection_reason():
    PushdownAutomaton("a-b").analyze()
    with pytest.raises(UnknownInputSymbolError):
        PushdownAutomaton("a+b").analyze()


def test_trace_recorded_up_to_failure():
    result = parse("a*)")
    assert isinstance(result.error, NoProductionError)
    assert result.error.state is Nonterminal.C
    assert result.trace[-1].remaining_input == ")$"


def test_observers_see_every_step():
    observer = RecordingObserver()
    result = PushdownAutomaton("(a)", observers=[observer]).parse()
    assert observer.steps == result.trace


def test_stream_observer_prints_padded_lines():
    stream = io.StringIO()
    PushdownAutomaton("a", observers=[StreamTraceObserver(stream, width=10)]).parse()
    lines = stream.getvalue().splitlines()
    assert lines[0] == "$<A>       \t a$"
    assert len(lines) == 10


def test_incomplete_derivation_with_sentinel_pushed_early():
    table = TransitionTable({
        (Nonterminal.A, Terminal.A): (TerminalSymbol(Terminal.A), TerminalSymbol(Terminal.END)),
    })
    result = PushdownAutomaton("a", table).parse()
    assert isinstance(result.error, IncompleteDerivationError)
    assert result.error.stack_left == "$"
    assert result.error.input_left == ""
    assert result.error_type == "incomplete_derivation"


def test_custom_table_is_injected():
    table = TransitionTable({
        (Nonterminal.A, Terminal.B): (TerminalSymbol(Terminal.B), NonterminalSymbol(Nonterminal.D)),
        (Nonterminal.D, Terminal.END): (EMPTY,),
    })
    assert PushdownAutomaton("b", table).parse().success
    assert not PushdownAutomaton("a", table).parse().success


def test_lexer_classifies_each_character():
    tokens = LexicalAnalyzer().tokenize("a*(b)")
    assert [token.terminal for token in tokens] == [
        Terminal.A, Terminal.TIMES, Terminal.LPAREN, Terminal.B, Terminal.RPAREN,
    ]
    assert [token.position for token in tokens] == [0, 1, 2, 3, 4]
