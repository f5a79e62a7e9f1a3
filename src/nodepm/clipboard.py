"""Copy text to the system clipboard through the platform's command-line tool."""

import shutil
import subprocess
import sys
from collections.abc import Callable


class ClipboardError(Exception):
    """No clipboard utility is available, or it failed."""


def clipboard_command(
    platform: str = sys.platform,
    which: Callable[[str], str | None] = shutil.which,
) -> list[str]:
    """Return the command that reads clipboard contents from stdin.

    Raises:
        ClipboardError: If no supported utility is installed.
    """
    if platform == "darwin":
        return ["pbcopy"]
    if platform == "win32":
        return ["clip"]
    if which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if which("xsel"):
        return ["xsel", "--clipboard", "--input"]
    raise ClipboardError("No clipboard utility found. Please install xclip or xsel.")


def copy_to_clipboard(text: str, command: list[str] | None = None) -> None:
    """Pipe ``text`` into the clipboard utility.

    Raises:
        ClipboardError: If the utility is missing or exits with an error.
    """
    command = command or clipboard_command()
    try:
        subprocess.run(
            command,
            input=text,
            text=True,
            check=True,
            capture_output=True,
            timeout=5.0,
        )
    except FileNotFoundError as e:
        raise ClipboardError(f"{command[0]} not found") from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise ClipboardError(f"{command[0]} failed: {detail}") from e
    except (subprocess.TimeoutExpired, OSError) as e:
        raise ClipboardError(f"{command[0]} failed: {e}") from e
