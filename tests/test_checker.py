import logging
from pathlib import Path

import pytest

from conftest import REPORT_TEMPLATE, write_files
from vaultcheck.check.checker import Checker, check_vault
from vaultcheck.check.config import CheckConfig, IgnoreRules
from vaultcheck.check.models import ReportError
from vaultcheck.store.base import DocumentStore
from vaultcheck.store.parser import parse_markdown_text
from vaultcheck.store.vault import FilesystemVault


def _run(vault: Path, config: CheckConfig, today):
    return Checker(FilesystemVault(vault), config, today=today).run()


def test_missing_reference_scenario(temp_vault, check_config, today):
    write_files(temp_vault, {"A.md": "# A\nSee [text](B.md)\n"})
    report = _run(temp_vault, check_config, today)
    assert [(f.source, f.target) for f in report.missing_references] == [("A.md", "B.md")]
    assert report.missing_anchors == []

    run = check_vault(temp_vault, check_config, today=today)
    rows = [line for line in run.text.splitlines() if line.startswith("| [")]
    assert rows == ["| [A.md](A.md) | B.md |"]


def test_heading_anchor_scenario(temp_vault, check_config, today):
    write_files(
        temp_vault,
        {
            "A.md": "# Title\n## Notes\n",
            "B.md": "[x](A.md#Notes)\n",
        },
    )
    assert _run(temp_vault, check_config, today).missing_anchors == []

    write_files(temp_vault, {"B.md": "[x](A.md#notes-typo)\n"})
    report = _run(temp_vault, check_config, today)
    assert [(f.source, f.anchor, f.target) for f in report.missing_anchors] == [("B.md", "#notes-typo", "A.md")]
    assert report.missing_references == []


def test_unreferenced_asset_scenario(temp_vault, today):
    write_files(
        temp_vault,
        {
            "index.md": "![[used.png]]\n",
            "images/pic.png": b"png",
            "images/used.png": b"png",
            "assets/archive/old.png": b"png",
        },
    )
    config = CheckConfig(workers=1, rules=IgnoreRules(ignore_unreferenced_path=["assets/archive"]))
    report = _run(temp_vault, config, today)
    assert [a.path for a in report.unreferenced] == ["images/pic.png"]


def test_self_reference_uses_source_blocks(temp_vault, check_config, today):
    write_files(
        temp_vault,
        {
            "a.md": "# Intro\nA paragraph ^abc\n\nSee [[#^abc]] and [[#Intro]] and [[#^zzz]]\n",
        },
    )
    report = _run(temp_vault, check_config, today)
    assert report.missing_references == []
    assert [(f.source, f.anchor, f.target) for f in report.missing_anchors] == [("a.md", "#^zzz", "a.md")]


def test_ignore_rules_and_future_dates(temp_vault, today):
    write_files(
        temp_vault,
        {
            "a.md": (
                "[[templates/missing.md]] [[2024-05-20]] [[2024-05-15]] [[2024-05-01]]\n"
                "[[2024-05_month]] [[2025]] [web](https://example.com) [[b#callout]]\n"
            ),
            "b.md": "# B\n",
        },
    )
    config = CheckConfig(workers=1, rules=IgnoreRules(ignore_files=["templates/missing.md"]))
    report = _run(temp_vault, config, today)
    assert [f.target for f in report.missing_references] == ["2024-05-01", "2024-05_month"]
    assert report.missing_anchors == []


def test_map_images(temp_vault, check_config, today):
    write_files(
        temp_vault,
        {
            "map.md": (
                "# Map\n"
                "```leaflet\n"
                "id: world\n"
                "image: [[world.jpg]]\n"
                "image: lost.jpg\n"
                "```\n"
                "```yaml\n"
                "image: not-a-map.jpg\n"
                "```\n"
            ),
            "assets/maps/world.jpg": b"jpg",
        },
    )
    report = _run(temp_vault, check_config, today)
    assert [(f.source, f.asset) for f in report.missing_assets] == [("map.md", "lost.jpg")]
    assert report.missing_references == []
    assert report.unreferenced == []


def test_anchor_into_asset_without_metadata(temp_vault, check_config, today):
    write_files(temp_vault, {"a.md": "[[paper.pdf#page=2]]\n", "assets/paper.pdf": b"%PDF"})
    report = _run(temp_vault, check_config, today)
    assert [(f.anchor, f.detail) for f in report.missing_anchors] == [("#page=2", "missing metadata")]


def test_unreadable_document_is_skipped(temp_vault, check_config, today, caplog):
    write_files(
        temp_vault,
        {
            "bad.md": b"\xff\xfe\xfa not utf-8",
            "good.md": "[[gone]]\n",
        },
    )
    with caplog.at_level(logging.WARNING):
        report = _run(temp_vault, check_config, today)
    assert report.failed == ["bad.md"]
    assert [f.source for f in report.missing_references] == ["good.md"]
    assert any("bad.md" in r.getMessage() for r in caplog.records)


def test_findings_keep_document_order_with_many_workers(temp_vault, today):
    files = {f"n{i:02d}.md": f"[[missing-{i:02d}]]\n" for i in range(30)}
    write_files(temp_vault, files)
    report = _run(temp_vault, CheckConfig(workers=8), today)
    assert [f.source for f in report.missing_references] == sorted(files)


def test_check_vault_is_idempotent(temp_vault, check_config, today):
    write_files(
        temp_vault,
        {
            "A.md": "[[B]] [[C#Nope]]\n",
            "C.md": "# Yes\n",
            "images/orphan.png": b"png",
        },
    )
    first = check_vault(temp_vault, check_config, today=today)
    assert first.written is True
    content = first.report_file.read_text(encoding="utf-8")
    assert content.startswith("# Missing\n\n<!--MISSING BEGIN-->")
    assert content.endswith("<!--MISSING END-->\n\nfooter\n")
    assert "stale" not in content

    second = check_vault(temp_vault, check_config, today=today)
    assert second.written is False
    assert second.report_file.read_text(encoding="utf-8") == content


def test_report_document_is_not_scanned(temp_vault, check_config, today):
    write_files(temp_vault, {"assets/no-sync/missing.md": REPORT_TEMPLATE.replace("stale", "[[gone]]")})
    report = _run(temp_vault, check_config, today)
    assert report.missing_references == []
    assert report.scanned == 0


def test_dry_run_leaves_report_untouched(temp_vault, check_config, today):
    write_files(temp_vault, {"A.md": "[[B]]\n"})
    run = check_vault(temp_vault, check_config, today=today, dry_run=True)
    assert run.written is False
    assert "| [A.md](A.md) | B |" in run.text
    assert (temp_vault / "assets/no-sync/missing.md").read_text(encoding="utf-8") == REPORT_TEMPLATE


def test_missing_report_document_is_fatal(tmp_path, check_config, today):
    write_files(tmp_path, {"A.md": "[[B]]\n"})
    with pytest.raises(ReportError):
        check_vault(tmp_path, check_config, today=today)


def test_report_without_markers_is_fatal(temp_vault, check_config, today):
    write_files(temp_vault, {"assets/no-sync/missing.md": "# No markers\n"})
    with pytest.raises(ReportError):
        check_vault(temp_vault, check_config, today=today)


class DictStore(DocumentStore):
    """In-memory store; anything not ending in .md is an asset."""

    def __init__(self, files: dict):
        self.files = files

    def list_documents(self):
        return sorted(p for p in self.files if p.endswith(".md"))

    def get_metadata(self, path):
        if not path.endswith(".md"):
            return None
        return parse_markdown_text(self.files[path])

    def read_text(self, path):
        return self.files[path]

    def list_all_files(self):
        return sorted(self.files)

    def resolve_path(self, raw_target, relative_to):
        for candidate in (raw_target, raw_target + ".md"):
            if candidate in self.files:
                return candidate
        return None


def test_checker_accepts_any_document_store(today):
    store = DictStore(
        {
            "a.md": "# A\n[[b#Top]] [[c]] ![[media/x.png]]\n",
            "b.md": "# Top\n",
            "media/x.png": "",
            "media/y.png": "",
        }
    )
    report = Checker(store, CheckConfig(workers=2), today=today).run()
    assert [f.target for f in report.missing_references] == ["c"]
    assert report.missing_anchors == []
    assert [a.path for a in report.unreferenced] == ["media/y.png"]
    assert report.scanned == 2


class BrokenBackendStore(DictStore):
    def read_text(self, path):
        if path == "bad.md":
            raise RuntimeError("backend unavailable")
        return super().read_text(path)


def test_store_failure_skips_only_that_document(today, caplog):
    store = BrokenBackendStore(
        {
            "a.md": "[[gone-a]]\n",
            "bad.md": "[[gone-bad]]\n",
            "c.md": "[[gone-c]]\n",
        }
    )
    with caplog.at_level(logging.WARNING):
        report = Checker(store, CheckConfig(workers=3), today=today).run()
    assert report.failed == ["bad.md"]
    assert [f.source for f in report.missing_references] == ["a.md", "c.md"]
    assert report.scanned == 2
    assert any("backend unavailable" in r.getMessage() for r in caplog.records)
