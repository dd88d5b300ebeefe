"""
PDA Parser Implementation - Grammar Vocabulary, Jump Table and Stack Automaton

This module implements a table-driven pushdown automaton that recognizes a small
arithmetic expression language (identifiers a|b|c, infix '-' and '*', and
parenthesized grouping). Parsing decisions come from a fixed LL(1) jump table and
the derivation is simulated on an explicit symbol stack.
"""

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, TextIO, Tuple, Union
import sys


class Terminal(Enum):
    """Input alphabet of the automaton. END is the synthetic end-of-input sentinel."""
    A = "a"
    B = "b"
    C = "c"
    MINUS = "-"
    TIMES = "*"
    LPAREN = "("
    RPAREN = ")"
    END = "$"

    def __str__(self) -> str:
        return self.value


class Nonterminal(Enum):
    """
    Nonterminal states pushed on the stack.

    A is an expression, B a term, C a factor; D and E are the tails that
    continue an expression with '-' and a term with '*'.
    """
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    def __str__(self) -> str:
        return f"<{self.value}>"


@dataclass(frozen=True)
class TerminalSymbol:
    """Stack symbol that must be matched literally against the next input token."""
    terminal: Terminal

    def __str__(self) -> str:
        return self.terminal.value


@dataclass(frozen=True)
class NonterminalSymbol:
    """Stack symbol that must be expanded through the jump table."""
    state: Nonterminal

    def __str__(self) -> str:
        return str(self.state)


@dataclass(frozen=True)
class EmptySymbol:
    """The epsilon production: consumes no input and pushes nothing."""

    def __str__(self) -> str:
        return ""


EMPTY = EmptySymbol()

Symbol = Union[TerminalSymbol, NonterminalSymbol, EmptySymbol]


def render_symbols(symbols: Iterable[Symbol]) -> str:
    """Concatenate the text of a symbol sequence, left to right."""
    return "".join(str(symbol) for symbol in symbols)


# --- Errors ---

class PdaError(Exception):
    """Base class for every error that ends a parse."""
    error_type = "parse_error"

    def __init__(self, message: str, position: int = -1):
        super().__init__(message)
        self.message = message
        self.position = position


class NoProductionError(PdaError):
    """The jump table has no entry for a nonterminal under the current lookahead."""
    error_type = "no_production"

    def __init__(self, state: Nonterminal, terminal: Terminal, position: int = -1,
                 expected: Iterable[Terminal] = ()):
        self.state = state
        self.terminal = terminal
        self.expected = tuple(expected)
        message = f"No production for {state} on lookahead '{terminal}'"
        if position >= 0:
            message += f" at position {position}"
        if self.expected:
            message += ". Expected one of: " + ", ".join(f"'{t}'" for t in self.expected)
        super().__init__(message, position)


class TerminalMismatchError(PdaError):
    """The terminal on top of the stack disagrees with the next input terminal."""
    error_type = "terminal_mismatch"

    def __init__(self, expected: Terminal, found: Terminal, position: int = -1):
        self.expected = expected
        self.found = found
        super().__init__(
            f"Expected '{expected}' but found '{found}' at position {position}", position
        )


class UnknownInputSymbolError(PdaError):
    """An input character is not part of the recognized alphabet."""
    error_type = "unknown_symbol"

    def __init__(self, char: str, position: int = -1):
        self.char = char
        super().__init__(f"Unrecognized character {char!r} at position {position}", position)


class IncompleteDerivationError(PdaError):
    """The loop stopped with exactly one of stack and input still holding symbols."""
    error_type = "incomplete_derivation"

    def __init__(self, stack_left: str, input_left: str):
        self.stack_left = stack_left
        self.input_left = input_left
        if stack_left:
            detail = f"stack still holds '{stack_left}'"
        else:
            detail = f"input still holds '{input_left}'"
        super().__init__(f"Incomplete derivation: {detail}")


class EmptyInputError(PdaError):
    """No input was supplied at all."""
    error_type = "empty_input"

    def __init__(self, message: str = "No input supplied"):
        super().__init__(message)


class InvalidInputError(PdaError):
    """The supplied input is not text."""
    error_type = "invalid_input"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Input must be a string, got {type(value).__name__}")


# --- Jump table ---

@dataclass(frozen=True)
class Production:
    """A production rule as stored in the jump table."""
    lhs: Nonterminal
    rhs: Tuple[Symbol, ...]

    @property
    def is_epsilon(self) -> bool:
        return all(symbol == EMPTY for symbol in self.rhs)

    def __str__(self) -> str:
        if self.is_epsilon:
            return f"{self.lhs} -> ε"
        return f"{self.lhs} -> {render_symbols(self.rhs)}"


@dataclass(frozen=True)
class TableIssue:
    """An entry whose production cannot begin with its own lookahead terminal."""
    state: Nonterminal
    terminal: Terminal
    description: str

    def __str__(self) -> str:
        return f"Entry ({self.state}, '{self.terminal}'): {self.description}"


TransitionKey = Tuple[Nonterminal, Terminal]


class TransitionTable:
    """
    Immutable LL(1) jump table.

    Maps a (nonterminal, lookahead terminal) pair to the sequence of symbols
    that replaces the nonterminal on the stack. A missing pair is the designed
    error signal: lookup raises NoProductionError.
    """

    def __init__(self, entries: Mapping[TransitionKey, Iterable[Symbol]],
                 start_state: Nonterminal = Nonterminal.A):
        self._entries = MappingProxyType(
            {key: tuple(symbols) for key, symbols in entries.items()}
        )
        self.start_state = start_state

    def lookup(self, state: Nonterminal, terminal: Terminal, position: int = -1) -> Tuple[Symbol, ...]:
        """
        Get the production selected by a nonterminal and one lookahead terminal.

        Args:
            state: Nonterminal popped from the stack
            terminal: Next input terminal
            position: Input position of the lookahead, used for error reporting

        Returns:
            Tuple of symbols, leftmost first

        Raises:
            NoProductionError: if the table has no entry for the pair
        """
        try:
            return self._entries[(state, terminal)]
        except KeyError:
            raise NoProductionError(
                state, terminal, position, self.expected_terminals(state)
            ) from None

    def expected_terminals(self, state: Nonterminal) -> List[Terminal]:
        """Terminals that have an entry for the given state, in alphabet order."""
        return [t for t in Terminal if (state, t) in self._entries]

    def entries(self) -> Mapping[TransitionKey, Tuple[Symbol, ...]]:
        return self._entries

    @property
    def states(self) -> List[Nonterminal]:
        present = {state for state, _ in self._entries}
        return [state for state in Nonterminal if state in present]

    def productions_for(self, state: Nonterminal) -> List[Tuple[Symbol, ...]]:
        """Distinct right-hand sides of a state, in table order."""
        result = []
        for (lhs, _), rhs in self._entries.items():
            if lhs == state and rhs not in result:
                result.append(rhs)
        return result

    def productions(self) -> List[Production]:
        result = []
        for (lhs, _), rhs in self._entries.items():
            production = Production(lhs, rhs)
            if production not in result:
                result.append(production)
        return result

    def find_inconsistencies(self) -> List[TableIssue]:
        """
        Check that every entry's production can start with the entry's own lookahead.

        A production starting with a terminal must start with the key terminal,
        and one starting with a nonterminal needs an entry for the same lookahead.
        Epsilon entries are not checked.
        """
        issues = []
        for (state, terminal), rhs in self._entries.items():
            if not rhs or rhs[0] == EMPTY:
                continue
            first = rhs[0]
            if isinstance(first, TerminalSymbol) and first.terminal != terminal:
                issues.append(TableIssue(
                    state, terminal,
                    f"production starts with '{first.terminal}' instead of '{terminal}'"
                ))
            elif isinstance(first, NonterminalSymbol) and (first.state, terminal) not in self._entries:
                issues.append(TableIssue(
                    state, terminal,
                    f"production starts with {first.state}, which has no entry for '{terminal}'"
                ))
        return issues

    def derive_sentences(self, max_length: int) -> List[str]:
        """
        Enumerate sentences the table derives from the start state.

        Expands the leftmost nonterminal with every production of that state
        and keeps the sentential forms that can still fit in max_length
        terminals.

        Args:
            max_length: Maximum number of terminals in a sentence

        Returns:
            Sentences sorted by length, then text
        """
        min_yields = self._minimum_yields()
        # Zero-yield tails are bounded by the symbols that introduced them
        max_form_length = 3 * max_length + 3
        start = (NonterminalSymbol(self.start_state),)
        sentences = set()
        seen = set()
        pending = [start]

        while pending:
            form = pending.pop()
            if form in seen:
                continue
            seen.add(form)

            index = next(
                (i for i, symbol in enumerate(form) if isinstance(symbol, NonterminalSymbol)),
                None
            )
            if index is None:
                sentences.add(render_symbols(form))
                continue

            for rhs in self.productions_for(form[index].state):
                body = tuple(symbol for symbol in rhs if symbol != EMPTY)
                expanded = form[:index] + body + form[index + 1:]
                if (len(expanded) <= max_form_length
                        and self._form_yield(expanded, min_yields) <= max_length):
                    pending.append(expanded)

        return sorted(sentences, key=lambda s: (len(s), s))

    def _minimum_yields(self) -> Dict[Nonterminal, int]:
        """Fewest terminals each state can derive; unproductive states are absent."""
        yields: Dict[Nonterminal, int] = {}
        changed = True
        while changed:
            changed = False
            for (state, _), rhs in self._entries.items():
                total: Optional[int] = 0
                for symbol in rhs:
                    if isinstance(symbol, TerminalSymbol):
                        total += 1
                    elif isinstance(symbol, NonterminalSymbol):
                        if symbol.state not in yields:
                            total = None
                            break
                        total += yields[symbol.state]
                if total is not None and total < yields.get(state, sys.maxsize):
                    yields[state] = total
                    changed = True
        return yields

    @staticmethod
    def _form_yield(form: Tuple[Symbol, ...], min_yields: Dict[Nonterminal, int]) -> int:
        total = 0
        for symbol in form:
            if isinstance(symbol, TerminalSymbol):
                total += 1
            elif isinstance(symbol, NonterminalSymbol):
                total += min_yields.get(symbol.state, sys.maxsize)
        return total

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __str__(self) -> str:
        lines = ["Jump Table:"]
        for (state, terminal), rhs in self._entries.items():
            lines.append(f"  M[{state}, {terminal}] = {render_symbols(rhs) or 'ε'}")
        return "\n".join(lines)


def _build_jump_table() -> TransitionTable:
    A, B, C, D, E = Nonterminal.A, Nonterminal.B, Nonterminal.C, Nonterminal.D, Nonterminal.E

    def n(state: Nonterminal) -> NonterminalSymbol:
        return NonterminalSymbol(state)

    def t(terminal: Terminal) -> TerminalSymbol:
        return TerminalSymbol(terminal)

    entries = {}

    # Anything that can open a factor descends into a term, then a factor
    for first in (Terminal.A, Terminal.B, Terminal.C, Terminal.LPAREN):
        entries[(A, first)] = (n(B), n(D))
        entries[(B, first)] = (n(C), n(E))

    entries[(C, Terminal.A)] = (t(Terminal.A),)
    entries[(C, Terminal.B)] = (t(Terminal.B),)
    entries[(C, Terminal.C)] = (t(Terminal.C),)
    entries[(C, Terminal.LPAREN)] = (t(Terminal.LPAREN), n(A), t(Terminal.RPAREN))

    entries[(D, Terminal.MINUS)] = (t(Terminal.MINUS), n(B), n(D))
    entries[(E, Terminal.TIMES)] = (t(Terminal.TIMES), n(C), n(E))

    # Tails end at a closing bracket, the sentinel, or the lower-precedence operator
    entries[(E, Terminal.MINUS)] = (EMPTY,)
    for follow in (Terminal.RPAREN, Terminal.END):
        entries[(D, follow)] = (EMPTY,)
        entries[(E, follow)] = (EMPTY,)

    return TransitionTable(entries, start_state=A)


JUMP_TABLE = _build_jump_table()


# --- Lexical analysis ---

@dataclass(frozen=True)
class Token:
    """Represents a classified input character."""
    terminal: Terminal
    value: str
    position: int

    def __str__(self) -> str:
        return f"Token({self.terminal.name}, '{self.value}', pos={self.position})"


class LexicalAnalyzer:
    """
    Classifies each input character into a Token exactly once.

    The sentinel '$' is reserved for the automaton and is rejected like any
    other character outside the alphabet.
    """

    def __init__(self):
        self.terminals: Dict[str, Terminal] = {
            terminal.value: terminal for terminal in Terminal if terminal is not Terminal.END
        }

    def tokenize(self, input_string: str) -> List[Token]:
        """
        Tokenize an input string.

        Args:
            input_string: Raw text, one character per terminal

        Returns:
            List of Token objects, without the end sentinel

        Raises:
            UnknownInputSymbolError: for the first character outside the alphabet
        """
        tokens = []
        for position, char in enumerate(input_string):
            terminal = self.terminals.get(char)
            if terminal is None:
                raise UnknownInputSymbolError(char, position)
            tokens.append(Token(terminal, char, position))
        return tokens


# --- Trace ---

@dataclass(frozen=True)
class ParseStep:
    """Snapshot of the automaton after one step; step 0 is the initial configuration."""
    step_number: int
    stack: Tuple[Symbol, ...]  # Bottom to top
    remaining_input: str
    action: str

    @property
    def stack_text(self) -> str:
        return render_symbols(self.stack)

    def format(self, width: int = 20) -> str:
        """Console rendering: padded stack, tab, remaining input."""
        return f"{self.stack_text.ljust(width)} \t {self.remaining_input}"

    def __str__(self) -> str:
        return (f"Step {self.step_number}: Stack=[{self.stack_text}] "
                f"Input=[{self.remaining_input}] Action={self.action}")


class TraceObserver(ABC):
    """Passive receiver of trace records. Must not influence parsing."""

    @abstractmethod
    def observe(self, step: ParseStep) -> None:
        raise NotImplementedError()


class StreamTraceObserver(TraceObserver):
    """Writes each step to a text stream as it happens."""

    def __init__(self, stream: Optional[TextIO] = None, width: int = 20):
        self.stream = stream
        self.width = width

    def observe(self, step: ParseStep) -> None:
        print(step.format(self.width), file=self.stream or sys.stdout)


@dataclass
class ParseResult:
    """Represents the outcome of one parse."""
    success: bool
    error: Optional[PdaError] = None
    trace: List[ParseStep] = field(default_factory=list)

    @property
    def error_message(self) -> str:
        return self.error.message if self.error else ""

    @property
    def error_position(self) -> int:
        return self.error.position if self.error else -1

    @property
    def error_type(self) -> Optional[str]:
        return self.error.error_type if self.error else None

    def __str__(self) -> str:
        if self.success:
            return f"Accepted after {len(self.trace) - 1} steps"
        return f"Rejected: {self.error_message}"


# --- Automaton ---

class PushdownAutomaton:
    """
    Stack automaton driven by a jump table.

    Each instance owns one stack and one input cursor and parses its input
    once; later calls to parse() return the same result.
    """

    def __init__(self, input_string: str, table: TransitionTable = JUMP_TABLE,
                 observers: Iterable[TraceObserver] = ()):
        """
        Args:
            input_string: Text to recognize, without the end sentinel
            table: Jump table to consult
            observers: Trace observers notified after every step
        """
        self.input_string = input_string
        self.table = table
        self.observers = list(observers)
        self.lexer = LexicalAnalyzer()
        self.stack: List[Symbol] = []
        self.remaining: Deque[Token] = deque()
        self.trace: List[ParseStep] = []
        self._result: Optional[ParseResult] = None

    def parse(self) -> ParseResult:
        """Run the automaton and report acceptance or the rejection reason."""
        if self._result is None:
            try:
                self._run()
            except PdaError as e:
                self._result = ParseResult(success=False, error=e, trace=list(self.trace))
            else:
                self._result = ParseResult(success=True, trace=list(self.trace))
        return self._result

    def analyze(self) -> None:
        """Run the automaton, raising the PdaError that rejected the input."""
        result = self.parse()
        if result.error is not None:
            raise result.error

    @property
    def remaining_text(self) -> str:
        return "".join(token.value for token in self.remaining)

    def _run(self):
        tokens = self.lexer.tokenize(self.input_string)

        self.remaining = deque(tokens)
        self.remaining.append(Token(Terminal.END, Terminal.END.value, len(self.input_string)))
        self.stack = [TerminalSymbol(Terminal.END), NonterminalSymbol(self.table.start_state)]
        self._emit("start")

        while self.remaining and self.stack:
            symbol = self.stack.pop()

            if isinstance(symbol, NonterminalSymbol):
                lookahead = self.remaining[0]
                production = self.table.lookup(symbol.state, lookahead.terminal, lookahead.position)
                # Leftmost symbol ends up on top
                self.stack.extend(reversed(production))
                action = f"expand {symbol} -> {render_symbols(production) or 'ε'}"

            elif isinstance(symbol, TerminalSymbol):
                lookahead = self.remaining[0]
                if lookahead.terminal != symbol.terminal:
                    raise TerminalMismatchError(symbol.terminal, lookahead.terminal, lookahead.position)
                self.remaining.popleft()
                action = f"match {symbol}"

            else:
                action = "skip ε"

            self._emit(action)

        if self.stack or self.remaining:
            raise IncompleteDerivationError(render_symbols(self.stack), self.remaining_text)

    def _emit(self, action: str):
        step = ParseStep(
            step_number=len(self.trace),
            stack=tuple(self.stack),
            remaining_input=self.remaining_text,
            action=action
        )
        self.trace.append(step)
        for observer in self.observers:
            observer.observe(step)


def parse(input_string: str, table: TransitionTable = JUMP_TABLE) -> ParseResult:
    """Parse a string with a fresh automaton."""
    return PushdownAutomaton(input_string, table).parse()


# --- High level interface ---

class PdaParserVisualizer:
    """
    Integrates the automaton with the visualization layer.

    Results are returned as plain dictionaries so the HTTP layer can serialize
    them directly.
    """

    def __init__(self, table: TransitionTable = JUMP_TABLE, config=None):
        self.table = table
        self.config = config

    def describe_table(self) -> Dict[str, Any]:
        """
        Render the jump table and list its productions.

        Returns:
            Dictionary with table HTML, productions, symbols and any inconsistencies
        """
        from visualization import VisualizationGenerator
        viz_generator = VisualizationGenerator(self.config)

        return {
            'success': True,
            'table_html': viz_generator.generate_transition_table_html(self.table),
            'productions': [str(p) for p in self.table.productions()],
            'terminals': [t.value for t in Terminal],
            'non_terminals': [str(s) for s in self.table.states],
            'start_symbol': str(self.table.start_state),
            'entry_count': len(self.table),
            'inconsistencies': [str(issue) for issue in self.table.find_inconsistencies()]
        }

    def parse_input(self, input_string: Optional[str]) -> Dict[str, Any]:
        """
        Parse an input string and generate visualization.

        Args:
            input_string: String to parse; None means no input was supplied and
                any other non-string value is rejected as invalid_input

        Returns:
            Dictionary containing parsing results and rendered trace
        """
        from visualization import VisualizationGenerator
        viz_generator = VisualizationGenerator(self.config)

        try:
            if input_string is None:
                raise EmptyInputError()
            if not isinstance(input_string, str):
                raise InvalidInputError(input_string)

            result = PushdownAutomaton(input_string, self.table).parse()
            trace_text = viz_generator.trace_formatter.format_trace_text(result.trace)
            trace_html = viz_generator.generate_trace_html(result.trace)

            if result.success:
                return {
                    'success': True,
                    'trace_steps': len(result.trace),
                    'trace_text': trace_text,
                    'trace_html': trace_html,
                    'input_string': input_string
                }
            return {
                'success': False,
                'error': result.error_message,
                'error_type': result.error_type,
                'error_position': result.error_position,
                'error_html': viz_generator.format_error_message(
                    result.error_message, result.error_position, input_string
                ),
                'trace_steps': len(result.trace),
                'trace_text': trace_text,
                'trace_html': trace_html,
                'input_string': input_string
            }

        except (EmptyInputError, InvalidInputError) as e:
            return {
                'success': False,
                'error': e.message,
                'error_type': e.error_type,
                'error_position': -1,
                'error_html': viz_generator.format_error_message(e.message)
            }

        except Exception as e:
            return {
                'success': False,
                'error': f"Input parsing failed: {str(e)}",
                'error_type': 'system_error',
                'error_position': -1,
                'input_string': input_string
            }
