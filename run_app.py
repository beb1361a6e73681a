"""
Run script for the app.

Launches the Streamlit application on localhost with the theme saved by the
previous session.
"""

import subprocess
import sys
from pathlib import Path

from config import load_settings
from session_store import SessionStore


def build_command(app_path: Path, theme: str) -> list[str]:
    return [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(app_path),
        "--server.address",
        "localhost",
        "--server.port",
        "8501",
        "--browser.gatherUsageStats",
        "false",
        "--theme.base",
        theme,
        "--theme.primaryColor",
        "#EC4899",
    ]


def main():
    """Launch the Streamlit app"""
    script_dir = Path(__file__).parent
    app_path = script_dir / "streamlit_app.py"

    if not app_path.exists():
        print(f"Error: Streamlit app not found at {app_path}")
        sys.exit(1)

    settings = load_settings()
    theme = SessionStore.from_data_dir(settings.data_dir).get_theme()
    cmd = build_command(app_path, theme.value)

    print("Starting Roadmap Architect...")
    print("App will be available at: http://localhost:8501")
    print("Press Ctrl+C to stop the server")
    print("-" * 50)

    try:
        subprocess.run(cmd, cwd=script_dir, check=True)
    except KeyboardInterrupt:
        print("\nShutting down...")
    except subprocess.CalledProcessError as e:
        print(f"Error running the app: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
