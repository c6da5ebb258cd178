"""Tests for CLI argument parsing and the offline commands."""

import argparse
import json
import os
import tempfile

import httpx
import pytest

from pagedeck import cli
from pagedeck.cli import _parse_rotation, build_parser, main
from pagedeck.services.pdf_api import PdfApiClient
from pagedeck.utils import config_manager as config_module
from pagedeck.utils.config_manager import ConfigManager


@pytest.fixture
def isolated_config(monkeypatch):
    with tempfile.TemporaryDirectory() as d:
        manager = ConfigManager(config_path=os.path.join(d, "settings.json"))
        monkeypatch.setattr(config_module, "_config_manager", manager)
        yield manager


class TestParseRotation:
    def test_valid(self):
        assert _parse_rotation("3:90") == (3, 90)

    def test_whitespace(self):
        assert _parse_rotation(" 2 : -90 ") == (2, -90)

    @pytest.mark.parametrize("text", ["3", "a:90", "3:x", ""])
    def test_malformed(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_rotation(text)

    def test_page_zero(self):
        with pytest.raises(argparse.ArgumentTypeError, match="page number"):
            _parse_rotation("0:90")


class TestBuildParser:
    def test_encode_args(self):
        args = build_parser().parse_args(["encode", "3", "1", "--keep-order"])
        assert args.command == "encode"
        assert args.pages == [3, 1]
        assert args.keep_order is True

    def test_decode_requires_count(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["decode", "1-3"])

    def test_layout_defaults(self):
        args = build_parser().parse_args(["layout", "--width", "800", "--height", "600", "--pages", "10"])
        assert args.scroll == 0.0

    def test_organize_rotations_repeatable(self):
        args = build_parser().parse_args(
            ["organize", "doc.pdf", "--order", "2,1", "--rotate", "1:90", "--rotate", "2:180"]
        )
        assert args.rotate == [(1, 90), (2, 180)]
        assert args.api is None

    def test_remove_requires_pages(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["remove", "doc.pdf"])


class TestOfflineCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "pagedeck-cli" in capsys.readouterr().out

    def test_encode(self, capsys):
        assert main(["encode", "5", "1", "2", "3"]) == 0
        assert capsys.readouterr().out.strip() == "1-3,5"

    def test_encode_keep_order(self, capsys):
        assert main(["encode", "--keep-order", "3", "1", "2", "5"]) == 0
        assert capsys.readouterr().out.strip() == "3,1-2,5"

    def test_encode_rejects_zero(self, capsys):
        assert main(["encode", "0", "1"]) == 1
        assert "start at 1" in capsys.readouterr().err

    def test_decode_clamps_and_skips(self, capsys):
        assert main(["decode", "2-4, x, 9-12", "--count", "10"]) == 0
        assert capsys.readouterr().out.strip() == "2 3 4 9 10"

    def test_layout(self, capsys, isolated_config):
        assert main(["layout", "--width", "1000", "--height", "800", "--pages", "100"]) == 0
        out = capsys.readouterr().out
        assert "Columns:    5" in out
        assert "Cell:       187 x 289 px" in out
        assert "Rows:       20" in out
        assert "Height:     6084 px" in out
        assert "Visible:    rows 0-5" in out
        assert "Pages:      1-30" in out

    def test_layout_without_pages(self, capsys, isolated_config):
        assert main(["layout", "--width", "1000", "--height", "800", "--pages", "0"]) == 0
        assert "Visible:    none" in capsys.readouterr().out

    def test_missing_input_file(self, capsys):
        assert main(["preview", "/nonexistent/doc.pdf"]) == 1
        assert "not found" in capsys.readouterr().err


class TestServiceCommands:
    @pytest.fixture
    def pdf_path(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "doc.pdf")
            with open(path, "wb") as f:
                f.write(b"%PDF-1.4")
            yield path

    def _use_transport(self, monkeypatch, handler):
        def make_client(_args):
            return PdfApiClient("http://pdf.test/api/pdf", transport=httpx.MockTransport(handler))

        monkeypatch.setattr(cli, "_make_client", make_client)

    def test_preview(self, capsys, monkeypatch, pdf_path):
        pages = [{"pageNumber": n, "imageUrl": f"/p/{n}.png"} for n in (1, 2, 3)]
        self._use_transport(monkeypatch, lambda r: httpx.Response(200, json={"pages": pages}))
        assert main(["preview", pdf_path]) == 0
        out = capsys.readouterr().out
        assert "Pages:      3" in out
        assert "Range:      1-3" in out

    def test_organize_drops_unlisted_pages(self, capsys, monkeypatch, pdf_path):
        sent = {}

        def handler(request):
            if request.url.path.endswith("/preview"):
                pages = [{"pageNumber": n, "imageUrl": f"/p/{n}.png"} for n in (1, 2, 3)]
                return httpx.Response(200, json={"pages": pages})
            sent["body"] = request.read().decode("latin-1")
            return httpx.Response(200, json={"downloadUrl": "/files/out.pdf"})

        self._use_transport(monkeypatch, handler)
        assert main(["organize", pdf_path, "--order", "3,1", "--rotate", "3:90"]) == 0
        assert 'name="order"\r\n\r\n3,1\r\n' in sent["body"]
        assert json.dumps([{"pageNumber": 3, "degrees": 90}]) in sent["body"]
        assert "http://pdf.test/files/out.pdf" in capsys.readouterr().out

    def test_blank_removal_range(self, capsys, monkeypatch, pdf_path):
        self._use_transport(monkeypatch, lambda r: httpx.Response(500))
        assert main(["remove", pdf_path, "--pages", "   "]) == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_service_error_reported(self, capsys, monkeypatch, pdf_path):
        self._use_transport(monkeypatch, lambda r: httpx.Response(502, text="bad gateway"))
        assert main(["extract", pdf_path, "--pages", "1"]) == 1
        assert "502" in capsys.readouterr().err
