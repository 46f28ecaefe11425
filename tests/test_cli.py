import json
from unittest.mock import patch

from image_auditor import cli
from image_auditor.core import crawl as real_crawl


def run_with_fake(argv, fetcher):
    def fake_crawl(options, verbose=False):
        return real_crawl(options, fetcher=fetcher, verbose=verbose)

    with patch.object(cli, "crawl", side_effect=fake_crawl) as mocked:
        code = cli.main(argv)
    return code, mocked


def test_main_writes_json_to_file(tmp_path, fetcher_factory, page_html):
    fetcher = fetcher_factory(pages={"https://example.com/": page_html('<img src="/a.png">')})
    out = tmp_path / "report.json"
    code, _ = run_with_fake(["https://example.com", "--no-size-analysis", "--out", str(out)], fetcher)
    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["domain"]["total_images_found"] == 1
    assert data["pages"][0]["imageTypes"] == {"png": 1}
    assert fetcher.metadata_calls == []


def test_main_stdout(capsys, fetcher_factory, page_html):
    fetcher = fetcher_factory(pages={"https://example.com/": page_html("")})
    code, _ = run_with_fake(["https://example.com", "--out", "-"], fetcher)
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["meta"]["total_pages_processed"] == 1


def test_main_merges_input_file_and_flags(tmp_path, capsys, fetcher_factory, page_html):
    input_file = tmp_path / "input.json"
    input_file.write_text(json.dumps({"startUrl": "https://example.com", "crawlUrls": True, "maxPages": 9}))
    fetcher = fetcher_factory(pages={"https://example.com/": page_html("")})
    code, mocked = run_with_fake(["--input", str(input_file), "--max-pages", "2", "--out", "-"], fetcher)
    assert code == 0
    options = mocked.call_args.args[0]
    assert options.crawl_enabled is True
    assert options.max_pages == 2
    assert options.start_url == "https://example.com"


def test_main_rejects_missing_seed(capsys):
    code = cli.main(["--out", "-"])
    assert code == 2
    assert "start_url is required" in capsys.readouterr().err


def test_generate_output_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = cli.generate_output_path("https://www.example.com/page")
    assert path.parent.name == "audits"
    assert path.name.startswith("www_example_com_")
    assert path.suffix == ".json"


def test_main_rejects_mistyped_input_document(tmp_path, capsys):
    input_file = tmp_path / "input.json"
    input_file.write_text(json.dumps({"startUrl": "https://example.com/", "requestTimeoutMs": "30000"}))
    code = cli.main(["--input", str(input_file), "--out", "-"])
    assert code == 2
    assert "request_timeout_ms" in capsys.readouterr().err


def test_main_rejects_input_file_that_is_not_an_object(tmp_path, capsys):
    input_file = tmp_path / "input.json"
    input_file.write_text("[1, 2]")
    assert cli.main(["--input", str(input_file), "--out", "-"]) == 2
    assert "JSON object" in capsys.readouterr().err
