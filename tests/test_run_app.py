from pathlib import Path

from run_app import build_command


def test_command_uses_theme():
    cmd = build_command(Path("streamlit_app.py"), "dark")

    assert cmd[1:4] == ["-m", "streamlit", "run"]
    assert cmd[cmd.index("--theme.base") + 1] == "dark"
    assert cmd[cmd.index("--server.address") + 1] == "localhost"
