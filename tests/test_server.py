import pytest

import server
from pda_parser import PdaParserVisualizer
from server import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_parse_accepts_expression(client):
    response = client.post("/parse", json={"input": "a-b*c"})
    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["traceSteps"] == len(data["traceText"].splitlines())
    assert "trace-table" in data["traceHtml"]


def test_parse_reports_unknown_symbol(client):
    response = client.post("/parse", json={"input": "a+b"})
    assert response.status_code == 400
    data = response.get_json()
    assert data["success"] is False
    assert data["error_type"] == "unknown_symbol"
    assert data["error_position"] == 1
    assert "'+'" in data["error"]


def test_parse_empty_string_is_a_grammar_error(client):
    response = client.post("/parse", json={"input": ""})
    assert response.status_code == 400
    data = response.get_json()
    assert data["error_type"] == "no_production"
    assert data["traceSteps"] == 1


def test_parse_without_input_field(client):
    response = client.post("/parse", json={})
    assert response.status_code == 400
    data = response.get_json()
    assert data["error_type"] == "empty_input"
    assert data["error"] == "No input supplied"


def test_parse_without_json_body(client):
    response = client.post("/parse", data="a-b")
    assert response.status_code == 400
    assert response.get_json()["error_type"] == "empty_input"


def test_parse_with_list_body(client):
    response = client.post("/parse", json=["a"])
    assert response.status_code == 400
    data = response.get_json()
    assert data["error_type"] == "empty_input"
    assert data["success"] is False


def test_parse_with_non_string_input(client):
    response = client.post("/parse", json={"input": 5})
    assert response.status_code == 400
    data = response.get_json()
    assert data["error_type"] == "invalid_input"
    assert data["error"] == "Input must be a string, got int"


def test_parse_internal_failure_is_a_system_error(client, monkeypatch):
    monkeypatch.setattr(server, "PdaParserVisualizer", lambda: PdaParserVisualizer(table=object()))
    response = client.post("/parse", json={"input": "a"})
    assert response.status_code == 500
    data = response.get_json()
    assert data["error_type"] == "system_error"
    assert data["error"].startswith("Input parsing failed:")


def test_transition_table(client):
    response = client.get("/transition-table")
    assert response.status_code == 200
    data = response.get_json()
    assert data["entryCount"] == 19
    assert data["startSymbol"] == "<A>"
    assert data["nonTerminals"] == ["<A>", "<B>", "<C>", "<D>", "<E>"]
    assert data["terminals"] == ["a", "b", "c", "-", "*", "(", ")", "$"]
    assert data["inconsistencies"] == []
    assert "<C> -> (<A>)" in data["productions"]
