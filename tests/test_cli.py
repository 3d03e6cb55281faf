from types import SimpleNamespace

from typer.testing import CliRunner

import bridge_cli as cli

runner = CliRunner()


def test_duplicate_option_rejected():
    result = runner.invoke(
        cli.app,
        ["start", "--com=COM1", "--udp-in-port=5500", "--udp-in-port=5502", "--udp-out-port=5501"],
    )
    assert result.exit_code == 1
    assert "--udp-in-port can only be assigned once" in result.output


def test_unknown_option_rejected():
    result = runner.invoke(cli.app, ["start", "--bogus=1"])
    assert result.exit_code != 0


def test_missing_serial_port(monkeypatch):
    monkeypatch.setattr(cli.list_ports, "comports", lambda: [])
    result = runner.invoke(
        cli.app, ["start", "--com=COM42", "--udp-in-port=5500", "--udp-out-port=5501"]
    )
    assert result.exit_code == 1
    assert "Could not find a serial port" in result.output


def test_missing_config_file(tmp_path):
    result = runner.invoke(cli.app, ["start", "--config", str(tmp_path / "none.json")])
    assert result.exit_code == 1
    assert "could not load config" in result.output


def test_ports_lists_devices(monkeypatch):
    monkeypatch.setattr(
        cli.list_ports,
        "comports",
        lambda: [SimpleNamespace(device="COM19", description="Cockpit panel")],
    )
    result = runner.invoke(cli.app, ["ports"])
    assert result.exit_code == 0
    assert "COM19" in result.output


def test_ports_none_found(monkeypatch):
    monkeypatch.setattr(cli.list_ports, "comports", lambda: [])
    result = runner.invoke(cli.app, ["ports"])
    assert result.exit_code == 0
    assert "No serial ports found" in result.output


def test_malformed_config_file(tmp_path):
    path = tmp_path / "bridge.yaml"
    path.write_text("com: [unterminated\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["start", "--config", str(path)])
    assert result.exit_code == 1
    assert "Malformed YAML" in result.output
