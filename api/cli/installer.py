"""
Component installation via the shadcn CLI.

`install_component` spawns `npx shadcn@latest add <url> ...` in the project
root and yields its combined stdout/stderr as text chunks. After a successful
run, files the CLI dropped into a top-level `app/` are merged into `src/app/`.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from core import config

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 4096


def project_root() -> Path:
    return Path(config.env_str("CLI_PROJECT_ROOT", os.getcwd())).resolve()


def package_runner() -> str:
    return config.env_str("CLI_PACKAGE_RUNNER", "npx")


def build_args(
    component_url: str,
    *,
    overwrite: bool = False,
    style: str | None = None,
    typescript: bool = False,
    path: str | None = None,
) -> list[str]:
    args = ["shadcn@latest", "add", component_url]
    if overwrite:
        args.append("--overwrite")
    if style:
        args.extend(["--style", style])
    if typescript:
        args.append("--typescript")
    if path:
        args.extend(["--path", path])
    return args


def merge_directories(source: Path, target: Path, *, overwrite: bool) -> None:
    """
    Move files from `source` into `target`, recursing into subdirectories.

    Existing target files are kept unless `overwrite`. Source directories
    left empty are removed.
    """
    target.mkdir(parents=True, exist_ok=True)
    for item in sorted(source.iterdir()):
        target_item = target / item.name
        if item.is_dir():
            merge_directories(item, target_item, overwrite=overwrite)
        elif overwrite or not target_item.exists():
            try:
                os.replace(item, target_item)
            except OSError:
                logger.warning("merge_move_failed source=%s target=%s", item, target_item, exc_info=True)

    if not any(source.iterdir()):
        source.rmdir()


def handle_post_install(root: Path, *, overwrite: bool) -> None:
    app_dir = root / "app"
    src_app_dir = root / "src" / "app"
    if not (app_dir.is_dir() and src_app_dir.is_dir()):
        return None

    try:
        merge_directories(app_dir, src_app_dir, overwrite=overwrite)
    except OSError:
        logger.exception("post_install_merge_failed root=%s", root)


async def install_component(
    component_url: str,
    *,
    overwrite: bool = False,
    style: str | None = None,
    typescript: bool = False,
    path: str | None = None,
    root: Path | None = None,
) -> AsyncIterator[str]:
    root = root or project_root()
    args = build_args(component_url, overwrite=overwrite, style=style, typescript=typescript, path=path)
    logger.info("component_install_started url=%s root=%s overwrite=%s", component_url, root, overwrite)

    try:
        proc = await asyncio.create_subprocess_exec(
            package_runner(),
            *args,
            cwd=str(root),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        logger.error("component_install_spawn_failed url=%s error=%s", component_url, exc)
        yield f"\nError: {exc.strerror or exc}"
        return

    try:
        # Decline any "overwrite?" prompt.
        if not overwrite:
            proc.stdin.write(b"n\n")
            try:
                await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                pass
        proc.stdin.close()

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await proc.stdout.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text:
                yield text
        tail = decoder.decode(b"", final=True)
        if tail:
            yield tail

        code = await proc.wait()
    finally:
        # Reap the child when the stream stops early.
        if proc.returncode is None:
            logger.warning("component_install_aborted url=%s pid=%s", component_url, proc.pid)
            proc.kill()
            await proc.wait()

    if code != 0:
        logger.warning("component_install_failed url=%s code=%s", component_url, code)
        yield f"\nProcess exited with code {code}"
        return

    await asyncio.to_thread(handle_post_install, root, overwrite=overwrite)
    logger.info("component_install_finished url=%s", component_url)
