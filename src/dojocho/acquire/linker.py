"""
Workspace dependency rewriting for packs added from a local checkout.

A pack developed inside a monorepo may depend on sibling packages via
``workspace:`` specifiers. Once copied out of the monorepo those cannot
be resolved, so the real on-disk package directories are returned for
linking after the pack is installed and their names are dropped from the
staged ``package.json``.

The specifiers are read from the source checkout, not from the staged
copy: pnpm, yarn and bun rewrite ``workspace:`` to concrete versions when
they pack.
"""

import json
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

WORKSPACE_PROTOCOL = "workspace:"
DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


def is_workspace_spec(spec: object) -> bool:
    return isinstance(spec, str) and spec.startswith(WORKSPACE_PROTOCOL)


def _read_descriptor(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("linker.descriptor_unreadable", path=str(path), error=str(e))
        return None
    return data if isinstance(data, dict) else None


def link_workspace_dependencies(source_dir: Path, descriptor: Path) -> list[Path]:
    """Resolve the source's ``workspace:`` dependencies and strip them from ``descriptor``.

    Each workspace dependency declared in ``source_dir/package.json`` is
    looked up in ``source_dir/node_modules`` and resolved through
    symlinks. Resolved names are deleted from the staged descriptor,
    whatever version the pack step wrote there; unresolved ones are left
    untouched for the dependency install to report.

    Never raises: an unreadable descriptor yields an empty list.

    Args:
        source_dir: The local pack directory the user pointed at.
        descriptor: The staged copy of that pack's ``package.json``.

    Returns:
        Real paths of the local packages to link, without duplicates.
    """
    source_pkg = _read_descriptor(source_dir / "package.json")
    staged_pkg = _read_descriptor(descriptor)
    if source_pkg is None or staged_pkg is None:
        return []

    linked: list[Path] = []
    changed = False
    for section in DEPENDENCY_SECTIONS:
        deps = source_pkg.get(section)
        if not isinstance(deps, dict):
            continue
        for dep_name, spec in deps.items():
            if not is_workspace_spec(spec):
                continue
            installed = source_dir / "node_modules" / dep_name
            if not installed.exists():
                logger.debug("linker.unresolved", dependency=dep_name, spec=spec)
                continue
            real_path = installed.resolve()
            if real_path not in linked:
                linked.append(real_path)
            staged_deps = staged_pkg.get(section)
            if isinstance(staged_deps, dict) and dep_name in staged_deps:
                del staged_deps[dep_name]
                changed = True
            logger.info("linker.workspace_dependency", dependency=dep_name, section=section, path=str(real_path))

    if changed:
        try:
            descriptor.write_text(json.dumps(staged_pkg, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        except OSError as e:
            logger.warning("linker.write_failed", path=str(descriptor), error=str(e))
            return []
    return linked
