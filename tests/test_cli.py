"""
Smoke tests for the command-line interface.
"""

import json

import cv2
import numpy as np
import pytest

from cursor_gallery.main import main, parse_assignments


@pytest.fixture
def cli(tmp_path, capsys):
    """Run the CLI against a temporary data directory, return (code, stdout)."""

    def run(*args):
        code = main(["--data-dir", str(tmp_path), "--log-level", "CRITICAL", *args])
        return code, capsys.readouterr().out

    return run


class TestCli:
    """End-to-end CLI flows."""

    def test_init_and_list(self, cli):
        """Test that init seeds one cursor and list marks it current."""
        code, out = cli("init")
        assert code == 0
        assert "1 cursor(s)" in out

        code, out = cli("list")
        assert code == 0
        assert out.startswith("*   1 off Cursor 1")

    def test_new_and_delete(self, cli):
        """Test creating, deleting and the last-record guard."""
        assert cli("new")[0] == 0
        code, out = cli("show")
        assert json.loads(out)["id"] == 2

        assert cli("delete")[0] == 0
        code, out = cli("delete")
        assert code == 1
        assert out.startswith("error: cursor 1")

    def test_navigation(self, cli):
        """Test next/prev/select."""
        cli("new")
        cli("new")

        assert "cursor 1" in cli("next")[1]
        assert "cursor 3" in cli("prev")[1]
        assert "cursor 2" in cli("select", "2")[1]
        assert cli("select", "9")[0] == 1

    def test_save_and_render(self, cli, tmp_path):
        """Test saving with an image and rendering the result."""
        image_path = tmp_path / "arrow.png"
        cv2.imwrite(str(image_path), np.zeros((64, 64, 4), dtype=np.uint8))

        code, out = cli(
            "save", "--set", "enabled=1", "--set", "animation_type=spin",
            "--set", "name=Spinner", "--image", str(image_path),
        )
        assert code == 0
        assert out.startswith("success: cursor 1 (Spinner)")

        code, out = cli("render", "1")
        assert code == 0
        assert "@keyframes custom-cursor-spin" in out
        assert 'url("/media/1-arrow.png")' in out

    def test_partial_save_keeps_other_fields(self, cli):
        """Test that save only changes the fields given."""
        cli("save", "--set", "enabled=1", "--set", "size=48")
        code, out = cli("save", "--set", "shadow_color=bad")

        assert code == 0
        assert out.startswith("partial")

        record = json.loads(cli("show", "1")[1])
        assert record["enabled"] is True
        assert record["size"] == 48

    def test_expand(self, cli, tmp_path):
        """Test expanding directives from a file."""
        page = tmp_path / "page.html"
        page.write_text('<p>[custom_cursor id="99"]</p>\n', encoding="utf-8")

        code, out = cli("expand", str(page))

        assert code == 0
        assert out == "<p></p>\n"

    def test_parse_assignments(self):
        """Test FIELD=VALUE parsing."""
        assert parse_assignments(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}

        with pytest.raises(ValueError):
            parse_assignments(["novalue"])
