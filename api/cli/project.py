"""
Local project inspection (git root, package.json, installed ui components).
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from fastapi import HTTPException, status

from . import installer

COMPONENTS_DIR = Path("src") / "components" / "ui"


async def git_root(cwd: Path) -> Path:
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "rev-parse",
            "--show-toplevel",
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Not in a git repository") from exc

    stdout, _ = await proc.communicate()
    if proc.returncode != 0 or not stdout.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Not in a git repository")
    return Path(stdout.decode("utf-8").strip())


def read_dependencies(root: Path) -> dict[str, dict[str, str]]:
    try:
        package_json = json.loads((root / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read package.json",
        ) from exc

    return {
        "dependencies": package_json.get("dependencies") or {},
        "devDependencies": package_json.get("devDependencies") or {},
    }


def installed_components(root: Path) -> list[str]:
    components_dir = root / COMPONENTS_DIR
    if not components_dir.is_dir():
        return []
    return sorted(path.stem for path in components_dir.iterdir() if path.suffix == ".tsx")


async def project_info() -> dict[str, Any]:
    root = await git_root(installer.project_root())
    return {
        "project_root": str(root),
        **read_dependencies(root),
        "installed_components": installed_components(root),
    }
