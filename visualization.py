"""
Visualization and Output Formatting Module

This module provides visualization and formatting capabilities for the PDA parser,
including HTML rendering of the jump table, parsing trace formatting (console text
and HTML) and error message formatting.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass
import html

from pda_parser import Terminal, TransitionTable, render_symbols


@dataclass
class VisualizationConfig:
    """Configuration options for visualization output."""
    table_css_classes: str = "jump-table"
    trace_css_classes: str = "parsing-trace"
    error_css_classes: str = "error-message"
    include_inline_styles: bool = True
    stack_width: int = 20  # Padding of the stack column in console traces
    max_stack_display: int = 60
    max_input_display: int = 60


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


class TransitionTableHTMLGenerator:
    """Generates HTML tables for the PDA jump table."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_table_html(self, table: TransitionTable) -> str:
        """
        Generate HTML for the jump table.

        Args:
            table: The jump table to render

        Returns:
            HTML string with one row per nonterminal and one column per terminal
        """
        states = table.states
        if not states:
            return self._generate_empty_table_html("No jump table entries found")

        terminals = list(Terminal)
        entries = table.entries()

        html_lines = []
        if self.config.include_inline_styles:
            html_lines.append(self._generate_table_styles())

        html_lines.append(f'<table class="grammar-table {self.config.table_css_classes}" role="table" aria-label="LL(1) jump table">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">State</th>')
        for terminal in terminals:
            html_lines.append(f'<th class="grammar-table-header" scope="col">{html.escape(terminal.value)}</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')

        html_lines.append('<tbody>')
        for state in states:
            html_lines.append('<tr>')
            html_lines.append(f'<th class="grammar-table-cell grammar-table-cell-primary" scope="row">{html.escape(str(state))}</th>')
            for terminal in terminals:
                rhs = entries.get((state, terminal))
                html_lines.append(f'<td class="grammar-table-cell">{self._format_production(rhs)}</td>')
            html_lines.append('</tr>')
        html_lines.append('</tbody>')
        html_lines.append('</table>')

        return '\n'.join(html_lines)

    def _format_production(self, rhs) -> str:
        """Format a table cell; missing entries stay blank."""
        if rhs is None:
            return ''
        text = render_symbols(rhs)
        if not text:
            return '<span class="grammar-action-epsilon">ε</span>'
        return f'<span class="grammar-action-expand">{html.escape(text)}</span>'

    def _generate_empty_table_html(self, message: str) -> str:
        html_lines = []
        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append(f'<p>{html.escape(message)}</p>')
        html_lines.append('</div>')
        return '\n'.join(html_lines)

    def _generate_table_styles(self) -> str:
        return """
<style>
.jump-table {
    border-collapse: collapse;
    font-family: 'Courier New', monospace;
}

.jump-table th, .jump-table td {
    border: 1px solid #374151;
    padding: 6px 10px;
    text-align: center;
}

.grammar-action-epsilon {
    color: #9ca3af;
}
</style>"""


class ParseTraceFormatter:
    """Formats parsing traces as console text or HTML."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def format_trace_text(self, trace_steps: List, width: Optional[int] = None) -> str:
        """
        Render the trace the way the console driver prints it.

        Args:
            trace_steps: List of ParseStep objects
            width: Stack column width, defaults to the configured one

        Returns:
            One line per step
        """
        width = self.config.stack_width if width is None else width
        return '\n'.join(step.format(width) for step in trace_steps)

    def generate_trace_html(self, trace_steps: List, title: str = "Parsing Trace") -> str:
        """
        Generate HTML representation of parsing trace.

        Args:
            trace_steps: List of ParseStep objects
            title: Title for the trace

        Returns:
            HTML string showing step-by-step parsing
        """
        if not trace_steps:
            return self._generate_empty_trace_html("No parsing steps recorded")

        html_lines = []
        if self.config.include_inline_styles:
            html_lines.append(self._generate_trace_styles())

        html_lines.append(f'<div class="{self.config.trace_css_classes}">')
        html_lines.append(f'<h3>{html.escape(title)}</h3>')

        html_lines.append('<table class="grammar-table trace-table" role="table" aria-label="Step-by-step parsing trace">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Step</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Stack</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Input</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Action</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')
        html_lines.append('<tbody>')

        for step in trace_steps:
            html_lines.append(self._format_trace_step(step))

        html_lines.append('</tbody>')
        html_lines.append('</table>')
        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def _format_trace_step(self, step) -> str:
        """Format a single parsing step as HTML table row."""
        lines = []
        action_class = self._get_action_css_class(step.action)

        stack_display = _truncate(step.stack_text, self.config.max_stack_display)
        input_display = _truncate(step.remaining_input, self.config.max_input_display)

        lines.append(f'<tr class="{action_class}">')
        lines.append(f'<td class="grammar-table-cell grammar-table-cell-primary step-number">{step.step_number}</td>')
        lines.append(f'<td class="grammar-table-cell stack">{html.escape(stack_display)}</td>')
        lines.append(f'<td class="grammar-table-cell input">{html.escape(input_display)}</td>')
        lines.append(f'<td class="grammar-table-cell action">{html.escape(step.action)}</td>')
        lines.append('</tr>')

        return '\n'.join(lines)

    def _get_action_css_class(self, action: str) -> str:
        if action.startswith('expand'):
            return 'expand-step'
        elif action.startswith('match'):
            return 'match-step'
        elif action.startswith('skip'):
            return 'epsilon-step'
        return 'start-step'

    def _generate_empty_trace_html(self, message: str) -> str:
        html_lines = []
        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append(f'<p>{html.escape(message)}</p>')
        html_lines.append('</div>')
        return '\n'.join(html_lines)

    def _generate_trace_styles(self) -> str:
        return """
<style>
.parsing-trace {
    font-family: 'Courier New', monospace;
    font-size: 14px;
}

.trace-table {
    border-collapse: collapse;
    width: 100%;
}

.trace-table th, .trace-table td {
    border: 1px solid #374151;
    padding: 6px 10px;
    text-align: left;
}

.match-step .action {
    color: #059669;
}

.epsilon-step .action {
    color: #9ca3af;
}
</style>"""


class ErrorMessageFormatter:
    """Formats error messages with proper styling and context."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def format_console_error(self, error_message: str) -> str:
        return f"ERROR: {error_message}"

    def format_parse_error(self, error_message: str, error_position: int = -1,
                           input_string: str = "", context_length: int = 20) -> str:
        """
        Format a parsing error message with the input tokens around it.

        Args:
            error_message: The error message
            error_position: Index of the offending token; len(input_string) is the sentinel
            input_string: The input string being parsed
            context_length: Number of tokens to show on each side of the error

        Returns:
            Formatted HTML error message
        """
        html_lines = []

        if self.config.include_inline_styles:
            html_lines.append(self._generate_error_styles())

        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append('<h4>Parse Error</h4>')
        html_lines.append(f'<p class="error-text">{html.escape(error_message)}</p>')

        if 0 <= error_position <= len(input_string):
            html_lines.append(self._generate_token_context(input_string, error_position, context_length))

        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def _generate_token_context(self, input_string: str, error_position: int,
                                context_length: int) -> str:
        """
        Show the input as the automaton sees it: consumed tokens, the lookahead
        it failed on, and the pending tokens up to the appended sentinel.
        """
        tokens = list(input_string) + [Terminal.END.value]
        first = max(0, error_position - context_length)
        last = min(len(tokens), error_position + context_length + 1)

        cells = []
        if first > 0:
            cells.append('<span class="token elided">…</span>')
        for index in range(first, last):
            if index < error_position:
                css = 'consumed'
            elif index == error_position:
                css = 'error-position'
            else:
                css = 'pending'
            if index == len(input_string):
                css += ' sentinel'
            cells.append(f'<span class="token {css}">{html.escape(tokens[index])}</span>')
        if last < len(tokens):
            cells.append('<span class="token elided">…</span>')

        if error_position == len(input_string):
            where = 'at end of input'
        else:
            where = f'at token {error_position} ({html.escape(repr(tokens[error_position]))})'

        html_lines = []
        html_lines.append('<div class="error-context">')
        html_lines.append(f'<p class="token-row">{"".join(cells)}</p>')
        html_lines.append(f'<p class="position-info">Lookahead {where}</p>')
        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def _generate_error_styles(self) -> str:
        return """
<style>
.error-message {
    color: #cc0000;
    background-color: #ffeeee;
    border: 1px solid #cc0000;
    border-radius: 4px;
    padding: 10px;
    margin: 10px 0;
}

.error-text {
    font-weight: bold;
}

.token {
    font-family: 'Courier New', monospace;
    padding: 0 2px;
}

.token.consumed {
    color: #9ca3af;
}

.token.error-position {
    background-color: #cc0000;
    color: #ffffff;
}
</style>"""


class VisualizationGenerator:
    """Main visualization generator that combines all formatting capabilities."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.table_generator = TransitionTableHTMLGenerator(self.config)
        self.trace_formatter = ParseTraceFormatter(self.config)
        self.error_formatter = ErrorMessageFormatter(self.config)

    def generate_complete_visualization(self, table: Optional[TransitionTable] = None,
                                        trace_steps: Optional[List] = None,
                                        error=None, input_string: str = "") -> Dict[str, str]:
        """
        Generate complete visualization output for all components.

        Args:
            table: Jump table to render
            trace_steps: List of ParseStep objects
            error: PdaError that rejected the input, if any
            input_string: The parsed input, used for error context

        Returns:
            Dictionary with keys: 'table_html', 'trace_html', 'trace_text', 'error_html'
        """
        result = {}

        if table is not None:
            result['table_html'] = self.table_generator.generate_table_html(table)
        else:
            result['table_html'] = self.table_generator._generate_empty_table_html(
                "No jump table available"
            )

        if trace_steps:
            result['trace_html'] = self.trace_formatter.generate_trace_html(trace_steps)
            result['trace_text'] = self.trace_formatter.format_trace_text(trace_steps)
        else:
            result['trace_html'] = self.trace_formatter._generate_empty_trace_html(
                "No parsing trace available"
            )
            result['trace_text'] = ''

        if error is not None:
            result['error_html'] = self.error_formatter.format_parse_error(
                error.message, error.position, input_string
            )
        else:
            result['error_html'] = ''

        return result

    def generate_transition_table_html(self, table: TransitionTable) -> str:
        return self.table_generator.generate_table_html(table)

    def generate_trace_html(self, trace_steps: List, title: str = "Parsing Trace") -> str:
        return self.trace_formatter.generate_trace_html(trace_steps, title)

    def format_error_message(self, error_message: str, error_position: int = -1,
                             input_string: str = "") -> str:
        """Format an error message."""
        return self.error_formatter.format_parse_error(
            error_message, error_position, input_string
        )
