from pathlib import Path

import yaml
from click.testing import CliRunner

from doc2raml.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliRender:
    def test_render_with_config(self, tmp_path):
        output_dir = tmp_path / "docs"
        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(FIXTURES / "bookshop.py"),
            "-c", str(FIXTURES / "bookshop.yaml"),
            "-o", str(output_dir),
        ])

        assert result.exit_code == 0, result.output
        assert "Found 4 routes (1 skipped)." in result.output
        raml_file = output_dir / "bookshop_v2.raml"
        assert raml_file.exists()

        raml = yaml.safe_load(raml_file.read_text(encoding="utf-8"))
        assert raml["title"] == "Bookshop"
        assert raml["baseUri"] == "https://api.bookshop.test/{version}"
        assert set(raml["types"]) == {"uuid", "Book", "Author"}
        assert list(raml["/books"]) == ["get", "post", "/{id}"]
        assert raml["/books"]["get"]["queryParameters"]["page"]["default"] == "1"
        get_book = raml["/books"]["/{id}"]["get"]
        assert get_book["displayName"] == "Get a book"
        example = get_book["responses"][200]["body"]["application/json"]["examples"]["Example1"]
        assert '"title": "Dune"' in example["value"]
        assert "/authors/{id}" in raml

    def test_render_without_config(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(FIXTURES),
            "-o", str(tmp_path),
            "--title", "Book API",
        ])

        assert result.exit_code == 0, result.output
        assert "Undefined types:" in result.output
        assert (tmp_path / "book_api_v1.raml").exists()

    def test_render_to_stdout(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "render", str(FIXTURES / "bookshop.py"),
            "-c", str(FIXTURES / "bookshop.yaml"),
            "--stdout", "--version", "v3",
        ])

        assert result.exit_code == 0, result.output
        assert "#%RAML 1.0" in result.output
        assert "version: v3" in result.output

    def test_render_missing_source(self):
        runner = CliRunner()
        result = runner.invoke(main, ["render", "does/not/exist.py"])
        assert result.exit_code != 0


class TestCliTags:
    def test_tags(self):
        runner = CliRunner()
        result = runner.invoke(main, ["tags", str(FIXTURES / "bookshop.py")])

        assert result.exit_code == 0, result.output
        assert "# get_book (line 14)" in result.output
        assert "# create_book (line 37)" in result.output
        assert "- GET /books/{id}" in result.output

    def test_no_blocks(self, tmp_path):
        f = tmp_path / "empty.py"
        f.write_text("def f():\n    pass\n")
        runner = CliRunner()
        result = runner.invoke(main, ["tags", str(f)])

        assert result.exit_code == 0
        assert "No annotation blocks found." in result.output
