"""Tests for the Rich Console factory and theme."""

from io import StringIO

from binderctl.output.console import BINDER_THEME, create_console, get_output


class TestCreateConsole:
    def test_returns_console_with_stringio(self) -> None:
        assert isinstance(create_console().file, StringIO)

    def test_no_color_disables_ansi(self) -> None:
        console = create_console(no_color=True)
        console.print("[binder.error]boom[/binder.error]")
        output = get_output(console)
        assert "\x1b" not in output
        assert "boom" in output

    def test_width(self) -> None:
        assert create_console().width == 120
        assert create_console(width=80).width == 80

    def test_theme_styles(self) -> None:
        for name in ("binder.ok", "binder.error", "binder.slot", "binder.holo"):
            assert name in BINDER_THEME.styles
