"""
Tests for the command line entry point.
"""
import logging

import pytest

from outline_crawler import cli
from outline_crawler.logs import ROOT_LOGGER


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root_logger = logging.getLogger(ROOT_LOGGER)
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)
        h.close()
    root_logger.setLevel(logging.NOTSET)


def test_flags_override_config(tmp_path):
    config = tmp_path / "crawl.yaml"
    config.write_text("fetch_workers: 9\nfetch_qps: 4\n", encoding="utf-8")

    args = cli.parse_args(
        ["fetch", "-c", str(config), "--outline", "o.txt", "--output", "out", "--fetch-qps", "1.5"]
    )
    cfg = cli.Config.from_yaml(args.config).with_overrides(fetch_qps=args.fetch_qps)

    assert args.output_dir == "out"
    assert cfg.fetch_workers == 9
    assert cfg.fetch_qps == 1.5


def test_fetch_without_outline_fails(tmp_path):
    assert cli.main(["fetch", "--output", str(tmp_path / "out")]) == cli.EXIT_FAILURE


def test_fetch_with_missing_outline_fails(tmp_path):
    code = cli.main(["fetch", "--outline", str(tmp_path / "none.txt"), "--output", str(tmp_path / "out")])
    assert code == cli.EXIT_FAILURE


def test_fetch_into_a_file_fails(tmp_path):
    outline = tmp_path / "outline.txt"
    outline.write_text("A,B,C,http://origin/#\n", encoding="utf-8")
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    assert cli.main(["fetch", "--outline", str(outline), "--output", str(blocker)]) == cli.EXIT_FAILURE


def test_fetch_with_only_sentinel_seeds_succeeds(tmp_path):
    outline = tmp_path / "outline.txt"
    outline.write_text("A,B,C,http://origin.invalid/#\n", encoding="utf-8")
    out = tmp_path / "out"

    code = cli.main(
        ["fetch", "--outline", str(outline), "--output", str(out), "--idle-timeout", "0.1", "--fetch-qps", "100"]
    )

    assert code == cli.EXIT_OK
    assert (out / "crawl.log").exists()
    assert not list(out.rglob("*.txt"))


def test_short_idle_timeout_is_reported(tmp_path, caplog):
    outline = tmp_path / "outline.txt"
    outline.write_text("A,B,C,http://origin.invalid/#\n", encoding="utf-8")

    code = cli.main(["fetch", "--outline", str(outline), "--output", str(tmp_path / "out"), "--idle-timeout", "0.1"])

    assert code == cli.EXIT_OK
    assert "next-page links of slow pages may be dropped" in caplog.text


def test_malformed_selector_in_config_fails(tmp_path):
    outline = tmp_path / "outline.txt"
    outline.write_text("A,B,C,http://origin.invalid/#\n", encoding="utf-8")
    config = tmp_path / "crawl.yaml"
    config.write_text("selectors:\n  next_link: 'a:nth-child('\n", encoding="utf-8")

    code = cli.main(["fetch", "-c", str(config), "--outline", str(outline), "--output", str(tmp_path / "out")])

    assert code == cli.EXIT_FAILURE


def test_outline_lists_task_directories(tmp_path, capsys):
    outline = tmp_path / "outline.txt"
    outline.write_text(
        "Fiction,Novels,Book1,http://origin/b1\nnot a seed\nScience,Physics,Book2,http://origin/b2\n",
        encoding="utf-8",
    )

    assert cli.main(["outline", str(outline), "--output", "root"]) == cli.EXIT_OK

    lines = [line for line in capsys.readouterr().out.splitlines() if "\t" in line]
    assert lines == [
        "root/Fiction/Novels/Book1\thttp://origin/b1",
        "root/Science/Physics/Book2\thttp://origin/b2",
    ]


def test_outline_missing_file(tmp_path):
    assert cli.main(["outline", str(tmp_path / "none.txt")]) == cli.EXIT_FAILURE
