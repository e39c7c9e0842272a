"""Tests for relm.package.package module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from relm.core.result import Err, Ok
from relm.output.console import MockConsole
from relm.package import registry as registry_module
from relm.package.package import Package, PinnedPackage
from relm.package.registry import Registry
from relm.test.fakes import FakeNpm


def _package(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    manifest: dict[str, object],
    views: dict[str, object] | None = None,
) -> tuple[Package, MockConsole, FakeNpm]:
    data = {"name": "pkg", "version": "1.0.0", **manifest}
    (tmp_path / "package.json").write_text(json.dumps(data, indent=2), encoding="utf-8")
    npm = FakeNpm(views)
    monkeypatch.setattr(registry_module, "run_process", npm)
    console = MockConsole()

    result = Package.create(tmp_path, Registry(cwd=tmp_path), console)

    assert isinstance(result, Ok)
    return result.value, console, npm


def _written(tmp_path: Path) -> dict[str, object]:
    return json.loads((tmp_path / "package.json").read_text(encoding="utf-8"))


class TestRecord:
    def test_unpublished_package_is_hardcoded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {})

        assert not pkg.record.published
        assert pkg.next_version_is_hardcoded()

    def test_published_version_is_not_hardcoded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {},
            {"pkg@1.0.0": {"name": "pkg", "version": "1.0.0", "versions": ["1.0.0"]}},
        )

        assert not pkg.next_version_is_hardcoded()

    def test_availability_requeries(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, npm = _package(tmp_path, monkeypatch, {})
        assert not pkg.next_version_is_available("1.0.0")

        npm.views["pkg@1.0.0"] = {"name": "pkg", "version": "1.0.0", "versions": ["1.0.0"]}

        assert pkg.next_version_is_available("1.0.0")


class TestPinDependencies:
    def test_pins_to_tagged_versions(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, console, _ = _package(
            tmp_path,
            monkeypatch,
            {
                "dependencies": {
                    "a": "1.0.0",
                    "b": "^2.0.0",
                    "@acme/c": "npm:@acme/real-c@1.0.0",
                },
                "pinnedDependencies": ["a", "b@next", "@acme/c", "missing"],
            },
            {
                "a dist-tags": {"latest": "1.2.0", "latest-rc": "1.3.0-0"},
                "b dist-tags": {"latest": "2.1.0"},
                "@acme/real-c dist-tags": {"latest": "1.5.0"},
            },
        )

        result = pkg.pin_dependency_versions("latest-rc")

        assert isinstance(result, Ok)
        assert result.value == [
            PinnedPackage(name="a", version="1.3.0-0", tag="latest-rc", alias=None),
            PinnedPackage(name="b", version="2.1.0", tag="latest", alias=None),
            PinnedPackage(name="@acme/real-c", version="1.5.0", tag="latest", alias="@acme/c"),
        ]
        assert pkg.manifest.dependencies == {
            "a": "1.3.0-0",
            "b": "2.1.0",
            "@acme/c": "npm:@acme/real-c@1.5.0",
        }
        assert console.has_warning()
        assert console.find("missing")

    def test_keeps_higher_pin(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, console, _ = _package(
            tmp_path,
            monkeypatch,
            {"dependencies": {"a": "3.0.0"}, "pinnedDependencies": ["a"]},
            {"a dist-tags": {"latest": "2.0.0", "legacy": "3.0.0"}},
        )

        result = pkg.pin_dependency_versions("latest")

        assert isinstance(result, Ok)
        assert result.value == [PinnedPackage(name="a", version="3.0.0", tag="legacy", alias=None)]
        assert console.has_warning()
        assert console.find("intentional")

    def test_higher_pin_without_tag(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {"dependencies": {"a": "3.0.0"}, "pinnedDependencies": ["a"]},
            {"a dist-tags": {"latest": "2.0.0"}},
        )

        result = pkg.pin_dependency_versions("latest")

        assert isinstance(result, Ok)
        assert result.value[0].tag is None
        assert pkg.manifest.dependencies == {"a": "3.0.0"}

    def test_no_tag_and_no_latest(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {"dependencies": {"a": "1.0.0"}, "pinnedDependencies": ["a@next"]},
        )

        result = pkg.pin_dependency_versions("latest")

        assert isinstance(result, Err)
        assert result.error.kind == "registry_error"

    def test_requires_pinned_dependencies(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {"dependencies": {"a": "1.0.0"}})

        result = pkg.pin_dependency_versions("latest")

        assert isinstance(result, Err)
        assert "pinnedDependencies" in result.error.message

    def test_write_manifest(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {"dependencies": {"a": "1.0.0"}, "pinnedDependencies": ["a"]},
            {"a dist-tags": {"latest": "1.1.0"}},
        )

        pkg.pin_dependency_versions("latest")
        pkg.write_manifest()

        assert _written(tmp_path)["dependencies"] == {"a": "1.1.0"}


class TestDependencies:
    def test_dependency_info_through_alias(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {"dependencies": {"@a/info": "npm:@acme/plugin-info@^1.2.3"}},
        )

        result = pkg.dependency_info("@acme/plugin-info")

        assert isinstance(result, Ok)
        assert result.value.dependency_name == "@a/info"
        assert result.value.package_name == "@acme/plugin-info"
        assert result.value.current_version == "1.2.3"

    def test_dependency_info_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {"dependencies": {"a": "1.0.0"}})

        result = pkg.dependency_info("b")

        assert isinstance(result, Err)
        assert result.error.kind == "dependency_missing"

    def test_bump_dependency_versions(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {"dependencies": {"a": "1.0.0", "alias-x": "npm:@acme/plugin-info@1.0.0"}},
            {"@acme/plugin-info dist-tags": {"latest": "2.0.0"}},
        )

        result = pkg.bump_dependency_versions(["a@1.5.0", "@acme/plugin-info"])

        assert isinstance(result, Ok)
        assert [d.final_version for d in result.value] == ["1.5.0", "npm:@acme/plugin-info@2.0.0"]
        assert pkg.manifest.dependencies == {
            "a": "1.5.0",
            "alias-x": "npm:@acme/plugin-info@2.0.0",
        }

    def test_bump_invalid_spec(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {"dependencies": {"a": "1.0.0"}})

        result = pkg.bump_dependency_versions(["a@b@c"])

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"


class TestTags:
    def test_bump_resolutions(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        pkg, _, _ = _package(
            tmp_path,
            monkeypatch,
            {"resolutions": {"x": "1.0.0"}},
            {"x dist-tags": {"latest": "1.0.0", "latest-rc": "1.1.0-0"}},
        )

        result = pkg.bump_resolutions("latest-rc")

        assert result == Ok({"x": "1.1.0-0"})
        assert pkg.manifest.resolutions == {"x": "1.1.0-0"}

    def test_bump_resolutions_requires_section(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {})

        result = pkg.bump_resolutions("latest")

        assert isinstance(result, Err)
        assert result.error.kind == "manifest_error"

    @pytest.mark.parametrize(("is_patch", "expected"), [(False, "1.3.0"), (True, "1.2.1")])
    def test_next_rc_version(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, is_patch: bool, expected: str
    ) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {}, {"pkg dist-tags": {"latest": "1.2.0"}})

        assert pkg.next_rc_version("latest", is_patch) == Ok(expected)

    def test_next_rc_version_unknown_tag(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pkg, _, _ = _package(tmp_path, monkeypatch, {})

        result = pkg.next_rc_version("latest")

        assert isinstance(result, Err)
        assert result.error.kind == "registry_error"
