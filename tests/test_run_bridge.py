"""Tests for the run_bridge command-line runner."""

import sys
from pathlib import Path

import run_bridge
from mcp_bridge.envelope import ResultEnvelope
from mcp_bridge.servers.demo import PIXEL_PNG

from conftest import write_registry

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def test_describe_envelope_hides_image_data():
    envelope = ResultEnvelope.from_result({
        "content": [
            {"type": "text", "text": "Screenshot taken"},
            {"type": "image", "data": PIXEL_PNG, "mimeType": "image/png"},
            {"type": "resource", "uri": "file:///tmp/x"},
        ],
        "status": 200,
    })

    lines = run_bridge.describe_envelope(envelope)

    assert lines[0] == "  [0] text: Screenshot taken"
    assert lines[1].startswith("  [1] image: image/png")
    assert PIXEL_PNG not in "\n".join(lines)
    assert lines[2] == "  [2] resource"
    assert lines[3] == "  status: 200"


def test_call_command_against_demo_server(tmp_path, capsys):
    config = write_registry(tmp_path / "mcp.json", {
        "demo": {
            "command": sys.executable,
            "args": ["-m", "mcp_bridge.servers.demo"],
            "env": {"PYTHONPATH": str(PROJECT_ROOT)},
        },
    })

    code = run_bridge.main(["--config", str(config), "--timeout", "30", "call", "demo", "echo", "--args", '{"message": "hi"}'])

    assert code == 0
    out = capsys.readouterr().out
    assert "demo.echo → 1 block(s)" in out
    assert "[0] text: hi" in out


def test_unknown_server_exits_with_error(tmp_path, capsys):
    config = write_registry(tmp_path / "mcp.json", {"demo": {"command": "echo"}})

    code = run_bridge.main(["--config", str(config), "call", "nope", "ping"])

    assert code == 1
    assert "MCP server 'nope' not found" in capsys.readouterr().out


def test_bad_args_json(tmp_path, capsys):
    config = write_registry(tmp_path / "mcp.json", {"demo": {"command": "echo"}})
    assert run_bridge.main(["--config", str(config), "call", "demo", "ping", "--args", "{oops"]) == 2


def test_args_must_be_a_json_object(tmp_path, capsys):
    config = write_registry(tmp_path / "mcp.json", {"demo": {"command": "echo"}})

    code = run_bridge.main(["--config", str(config), "call", "demo", "ping", "--args", "[1, 2]"])

    assert code == 2
    assert "must be a JSON object" in capsys.readouterr().out
