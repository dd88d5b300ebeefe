import sys
import traceback
from flask import Flask, request, jsonify

from pda_parser import PdaParserVisualizer

app = Flask(__name__)

# --- Server settings ---
HOST = '127.0.0.1'
PORT = 5000

# --- HTML Escape Helper ---
def escapeHtml(unsafe):
    if unsafe is None: return ''
    unsafe = str(unsafe)
    return unsafe.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;').replace('"', '&quot;').replace("'", '&#039;')

# --- Flask Endpoints ---

@app.route('/transition-table', methods=['GET'])
def transition_table():
    """Render the jump table and list the productions it encodes."""
    try:
        print("--- Rendering Jump Table ---", file=sys.stderr)
        result = PdaParserVisualizer().describe_table()

        if result['inconsistencies']:
            print(f"Table inconsistencies: {len(result['inconsistencies'])}", file=sys.stderr)

        return jsonify({
            "tableHtml": result['table_html'],
            "productions": result['productions'],
            "terminals": result['terminals'],
            "nonTerminals": result['non_terminals'],
            "startSymbol": result['start_symbol'],
            "entryCount": result['entry_count'],
            "inconsistencies": result['inconsistencies']
        })

    except Exception as e:
        print(f"--- UNEXPECTED Python Error: {e} ---", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        error_message = f"Unexpected server error: {escapeHtml(str(e))}"
        return jsonify({
            "error": error_message,
            "error_type": "system_error"
        }), 500

@app.route('/parse', methods=['POST'])
def parse_input():
    """
    Run the pushdown automaton on one input string.

    The empty string is a valid input; a body that is not a JSON object, or one
    without an "input" field, is reported as an empty_input error. Rejections
    carry the trace recorded up to the failure.
    """
    try:
        data = request.get_json(silent=True)
        string_input = data.get('input') if isinstance(data, dict) else None

        print(f"--- Parsing Input String: {string_input!r} ---", file=sys.stderr)
        parse_result = PdaParserVisualizer().parse_input(string_input)

        if parse_result.get('error_type') == 'system_error':
            print(f"--- Parsing CRASHED ---", file=sys.stderr)
            return jsonify({
                "error": escapeHtml(parse_result['error']),
                "error_type": "system_error"
            }), 500

        if parse_result['success']:
            print("--- Parsing SUCCEEDED ---", file=sys.stderr)
            return jsonify({
                "success": True,
                "traceSteps": parse_result['trace_steps'],
                "traceText": parse_result['trace_text'],
                "traceHtml": parse_result['trace_html']
            })

        print(f"--- Parsing FAILED ---", file=sys.stderr)
        print(f"Error: {parse_result['error']}", file=sys.stderr)

        return jsonify({
            "success": False,
            "error": parse_result['error'],
            "error_type": parse_result['error_type'],
            "error_position": parse_result['error_position'],
            "errorHtml": parse_result['error_html'],
            "traceSteps": parse_result.get('trace_steps', 0),
            "traceText": parse_result.get('trace_text', ''),
            "traceHtml": parse_result.get('trace_html', '')
        }), 400

    except Exception as e:
        print(f"--- UNEXPECTED Python Error: {e} ---", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        error_message = f"Unexpected server error: {escapeHtml(str(e))}"
        return jsonify({
            "error": error_message,
            "error_type": "system_error"
        }), 500

# --- Main Execution ---
if __name__ == '__main__':
    print("--- PDA Parser Server ---")
    print(f"Running on http://{HOST}:{PORT}")
    print("-" * 34)
    app.run(debug=True, host=HOST, port=PORT, use_reloader=False)
