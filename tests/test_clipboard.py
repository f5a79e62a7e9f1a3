"""Tests for the clipboard helper."""

import subprocess

import pytest

from nodepm.clipboard import ClipboardError, clipboard_command, copy_to_clipboard


def which_only(*available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


class TestClipboardCommand:
    """Utility selection per platform."""

    def test_macos(self):
        assert clipboard_command("darwin", which_only()) == ["pbcopy"]

    def test_windows(self):
        assert clipboard_command("win32", which_only()) == ["clip"]

    def test_linux_prefers_xclip(self):
        assert clipboard_command("linux", which_only("xclip", "xsel")) == ["xclip", "-selection", "clipboard"]

    def test_linux_falls_back_to_xsel(self):
        assert clipboard_command("linux", which_only("xsel")) == ["xsel", "--clipboard", "--input"]

    def test_linux_without_utility(self):
        with pytest.raises(ClipboardError, match="install xclip or xsel"):
            clipboard_command("linux", which_only())


class TestCopyToClipboard:
    """Running the utility."""

    def test_pipes_text_to_command(self, monkeypatch):
        calls = []

        def fake_run(command, **kwargs):
            calls.append((command, kwargs["input"]))
            return subprocess.CompletedProcess(command, 0)

        monkeypatch.setattr(subprocess, "run", fake_run)

        copy_to_clipboard("PID: 1 | Name: node | Command: N/A", command=["pbcopy"])

        assert calls == [(["pbcopy"], "PID: 1 | Name: node | Command: N/A")]

    def test_missing_binary(self):
        with pytest.raises(ClipboardError, match="not found"):
            copy_to_clipboard("x", command=["nodepm-no-such-clipboard-tool"])

    def test_failing_utility(self, monkeypatch):
        def fake_run(command, **kwargs):
            raise subprocess.CalledProcessError(1, command, stderr="Error: Can't open display")

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(ClipboardError, match="Can't open display"):
            copy_to_clipboard("x", command=["xclip"])

    def test_timeout(self, monkeypatch):
        def fake_run(command, **kwargs):
            raise subprocess.TimeoutExpired(command, 5.0)

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(ClipboardError, match="xsel failed"):
            copy_to_clipboard("x", command=["xsel"])
