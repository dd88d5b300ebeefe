#!/usr/bin/env python3
"""
Console driver for the PDA parser.

Usage:
  python cli.py [INPUT] [--stack-width N] [--html]

Reads one line from stdin when INPUT is not given, prints the trace step by
step, then either "Accepted" or "ERROR: <description>".
"""

import argparse
import sys
from typing import List, Optional

from pda_parser import EmptyInputError, PushdownAutomaton, StreamTraceObserver
from visualization import ErrorMessageFormatter, VisualizationConfig, VisualizationGenerator


def read_input_line(stream=None) -> str:
    """Read one line, without its line terminator; EOF means no input at all."""
    line = (stream or sys.stdin).readline()
    if not line:
        raise EmptyInputError()
    return line.rstrip("\r\n")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Recognize an expression over a, b, c, '-', '*' and brackets with a pushdown automaton.")
    ap.add_argument("input", nargs="?", help="String to parse (read from stdin when omitted)")
    ap.add_argument("--stack-width", type=int, default=VisualizationConfig.stack_width, help="Padding of the stack column")
    ap.add_argument("--html", action="store_true", help="Print the jump table and trace as HTML instead of live text lines")
    args = ap.parse_args(argv)

    config = VisualizationConfig(stack_width=args.stack_width)
    errors = ErrorMessageFormatter(config)

    try:
        input_string = args.input if args.input is not None else read_input_line()
    except EmptyInputError as e:
        print(errors.format_console_error(e.message))
        return 1

    observers = [] if args.html else [StreamTraceObserver(width=config.stack_width)]
    automaton = PushdownAutomaton(input_string, observers=observers)
    result = automaton.parse()

    if args.html:
        output = VisualizationGenerator(config).generate_complete_visualization(
            table=automaton.table, trace_steps=result.trace,
            error=result.error, input_string=input_string
        )
        print(output['table_html'])
        print(output['trace_html'])
        if output['error_html']:
            print(output['error_html'])

    if result.success:
        print("Accepted")
        return 0

    print(errors.format_console_error(result.error_message))
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
