"""Unit tests for the in-process host adapters (pants_bridge.host)."""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from pants_bridge import host
from pants_bridge.host import AddressDirtyFiles, ConsoleMessageSink, StaticBuildTarget, StaticModule
from pants_bridge.models import CompilerMessage, ProgressMessage, Severity
from pants_bridge.ports import BuildTarget, DirtyFilesHolder, MessageSink, ModuleMetadata


class TestProtocols:
    @pytest.mark.unit
    def test_adapters_satisfy_ports(self):
        assert isinstance(StaticBuildTarget(pants_executable=Path("./pants")), BuildTarget)
        assert isinstance(AddressDirtyFiles([]), DirtyFilesHolder)
        assert isinstance(ConsoleMessageSink(), MessageSink)
        assert isinstance(StaticModule("app"), ModuleMetadata)


class TestAddressDirtyFiles:
    @pytest.mark.unit
    def test_one_dirty_file_per_address(self):
        files = list(AddressDirtyFiles(["src/java/foo:lib", "src/java/bar"]).dirty_files())
        assert [f.path for f in files] == [Path("src/java/foo"), Path("src/java/bar")]
        assert files[0].root_target_addresses == frozenset({"src/java/foo:lib"})

    @pytest.mark.unit
    def test_empty(self):
        assert list(AddressDirtyFiles().dirty_files()) == []


class TestConsoleMessageSink:
    @pytest.fixture
    def recorded_console(self, monkeypatch) -> Console:
        console = Console(record=True, width=200, color_system=None)
        monkeypatch.setattr(host, "console", console)
        return console

    @pytest.mark.unit
    def test_counts_by_severity(self, recorded_console):
        sink = ConsoleMessageSink()
        sink.process_message(CompilerMessage(severity=Severity.ERROR, text="a"))
        sink.process_message(CompilerMessage(severity=Severity.ERROR, text="b"))
        sink.process_message(CompilerMessage(severity=Severity.WARNING, text="c"))
        assert sink.counts == {Severity.ERROR: 2, Severity.WARNING: 1, Severity.INFO: 0}

    @pytest.mark.unit
    def test_prints_location_and_literal_brackets(self, recorded_console):
        sink = ConsoleMessageSink()
        sink.process_message(
            CompilerMessage(severity=Severity.WARNING, text="[deprecation] old", file_path="A.java", line=3)
        )
        sink.progress(ProgressMessage(text="Recompiling [2] targets"))
        text = recorded_console.export_text()
        assert "A.java:3: [deprecation] old" in text
        assert "Recompiling [2] targets" in text


class TestStaticModule:
    @pytest.mark.unit
    def test_option_value(self):
        module = StaticModule("app", {"pants.target.addresses": '["a:b"]'})
        assert module.option_value("pants.target.addresses") == '["a:b"]'
        assert module.option_value("missing") is None
