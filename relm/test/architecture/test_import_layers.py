from __future__ import annotations

import pytest

from ._utils import iter_python_files, matches_prefix, parse_imports, relm_root

# Lower layers never import the layers that orchestrate them.
_FORBIDDEN: list[tuple[str, tuple[str, ...]]] = [
    ("core", ("relm.cli", "relm.release", "relm.package", "relm.signing", "relm.verify")),
    ("platform", ("relm.cli", "relm.release", "relm.package")),
    ("net", ("relm.cli", "relm.release", "relm.package")),
    ("package_manager", ("relm.cli", "relm.release")),
    ("package", ("relm.cli", "relm.release")),
    ("signing", ("relm.cli", "relm.release")),
    ("verify", ("relm.cli", "relm.release")),
    ("release", ("relm.cli",)),
]


@pytest.mark.parametrize(("layer", "forbidden"), _FORBIDDEN, ids=[layer for layer, _ in _FORBIDDEN])
def test_layer_does_not_import_upwards(layer: str, forbidden: tuple[str, ...]) -> None:
    root = relm_root()
    offenders: list[str] = []

    for file_path in iter_python_files(root / layer):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{layer} layering violations:\n" + "\n".join(offenders)
