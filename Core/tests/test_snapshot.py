from __future__ import annotations

import re
from datetime import datetime

import pytest

from selfheal.core.exceptions import SnapshotCaptureFailed
from selfheal.core.locator import Locator
from selfheal.core.snapshot import DocumentSnapshotter
from selfheal.logging.artifacts import ArtifactManager
from selfheal.utils.dom_extract import extract_relevant_markup, locator_to_css

PAGE = """<html><body>
<form id="login"><input name="email"><input name="password"><button id="old" class="btn primary">Go</button></form>
<ul><li>one</li><li>two</li></ul>
</body></html>"""


def test_capture_prepends_header_and_persists(healing_config, artifact_manager):
    snapshotter = DocumentSnapshotter(healing_config.snapshot, artifact_manager)
    snapshot = snapshotter.capture(PAGE)

    assert snapshot.markup == PAGE
    assert snapshot.indexed_paths[:3] == ["/html", "/html/body", "/form[@id='login']"]
    assert snapshot.content.startswith(
        "<!-- \nGenerated HTML with all available XPaths\n"
        f"Total XPaths found: {len(snapshot.indexed_paths)}\nSample XPaths:\n/html\n"
    )
    assert snapshot.content.endswith(PAGE)
    assert re.fullmatch(r"snapshot_\d{8}_\d{6}\.html", snapshot.path.name)
    assert snapshot.path.read_text(encoding="utf-8") == snapshot.content


def test_header_sample_is_bounded(healing_config, artifact_manager):
    config = healing_config.snapshot.model_copy(update={"sample_size": 2})
    snapshot = DocumentSnapshotter(config, artifact_manager).capture(PAGE)
    header = snapshot.content.split("-->", 1)[0]
    assert "/html\n/html/body\n" in header
    assert "/form[@id='login']" not in header


def test_previous_snapshots_are_cleared_once_per_process(tmp_path):
    snapshot_dir = tmp_path / "snapshots"
    snapshot_dir.mkdir()
    (snapshot_dir / "snapshot_20000101_000000.html").write_text("old", encoding="utf-8")
    manager = ArtifactManager(tmp_path / "artifacts", snapshot_dir)

    manager.write_snapshot("<html></html>")
    assert not (snapshot_dir / "snapshot_20000101_000000.html").exists()

    (snapshot_dir / "kept.html").write_text("kept", encoding="utf-8")
    manager.write_snapshot("<html></html>")
    ArtifactManager(tmp_path / "artifacts", snapshot_dir).write_snapshot("<html></html>")
    assert (snapshot_dir / "kept.html").exists()


def test_snapshots_in_the_same_second_share_a_file(tmp_path):
    manager = ArtifactManager(tmp_path / "artifacts", tmp_path / "snapshots")
    moment = datetime(2024, 5, 1, 12, 30, 15, 100)

    first = manager.write_snapshot("<p>first</p>", moment)
    second = manager.write_snapshot("<p>second</p>", moment.replace(microsecond=900000))

    assert first == second
    assert first.name == "snapshot_20240501_123015.html"
    assert first.read_text(encoding="utf-8") == "<p>second</p>"


def test_capture_write_failure_is_reported(healing_config, artifact_manager, monkeypatch):
    def refuse(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(artifact_manager, "write_snapshot", refuse)
    with pytest.raises(SnapshotCaptureFailed):
        DocumentSnapshotter(healing_config.snapshot, artifact_manager).capture(PAGE)


def test_locator_to_css_translations():
    assert locator_to_css(Locator.xpath("//button[@id='old']")) == 'button[id="old"]'
    assert locator_to_css(Locator.xpath('//*[@name="email"]')) == '[name="email"]'
    assert locator_to_css(Locator.xpath("//span[@class='foo bar']")) == 'span[class="foo bar"]'
    assert locator_to_css(Locator.xpath("//button")) == "button"
    assert locator_to_css(Locator.xpath("//form/button[1]")) is None
    assert locator_to_css(Locator.id("old")) == '[id="old"]'
    assert locator_to_css(Locator.class_name("btn")) == '[class~="btn"]'
    assert locator_to_css(Locator.css("form > button")) == "form > button"
    assert locator_to_css(Locator.link_text("Home")) is None


def test_trim_wraps_matched_elements(healing_config, artifact_manager):
    snapshotter = DocumentSnapshotter(healing_config.snapshot, artifact_manager)
    excerpt = snapshotter.trim(PAGE, [Locator.xpath("//button[@id='old']"), Locator.name("email")])
    assert excerpt.startswith("<root>\n")
    assert excerpt.endswith("\n</root>")
    assert 'id="old"' in excerpt
    assert ">Go</button>" in excerpt
    assert 'name="email"' in excerpt
    assert 'name="password"' not in excerpt
    assert "<li>" not in excerpt


def test_trim_falls_back_to_prefix_when_untranslatable():
    excerpt = extract_relevant_markup(PAGE, [Locator.xpath("//form/button[1]")], limit=40)
    assert excerpt == PAGE[:40]


def test_trim_falls_back_to_prefix_when_nothing_matches():
    excerpt = extract_relevant_markup(PAGE, [Locator.xpath("//button[@id='new']")], limit=60)
    assert excerpt == PAGE[:60]


def test_trim_skips_invalid_css():
    excerpt = extract_relevant_markup(PAGE, [Locator.css("[[broken"), Locator.tag("li")], limit=1000)
    assert "<li>one</li>" in excerpt
    assert "<li>two</li>" in excerpt


def test_trim_output_is_bounded():
    page = "<html><body>" + "<p>filler text</p>" * 5000 + "</body></html>"
    excerpt = extract_relevant_markup(page, [Locator.xpath("//p")], limit=1000)
    assert len(excerpt) <= 1000 + len("<root>\n\n</root>")
