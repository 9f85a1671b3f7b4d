"""Inlining of external templates and stylesheets into component sources."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, List, Optional

from loguru import logger

from resource_inliner.config_loader import InlineOptions, get_inline_options, load_config
from resource_inliner.discovery import find_candidate_files
from resource_inliner.errors import ResourceNotFoundError
from resource_inliner.literals import parse_style_urls
from resource_inliner.normalize import normalize_whitespace
from resource_inliner.paths import Resolver, make_resolver
from resource_inliner.stylesheets import render_stylesheet_async

_TEMPLATE_URL_RE = re.compile(r"templateUrl:\s*'([^']+?\.html)'")
_STYLE_URLS_RE = re.compile(r"styleUrls:\s*(\[[\s\S]*?\])")

STATUS_INLINED = "inlined"
STATUS_UNCHANGED = "unchanged"
STATUS_FAILED = "failed"


@dataclass
class FileResult:
    path: Path
    status: str
    error: Optional[str] = None


def _read_source(path: Path, encoding: str) -> str:
    with open(path, "r", encoding=encoding, newline="") as f:
        return f.read()


def _write_source(path: Path, content: str, encoding: str) -> None:
    with open(path, "w", encoding=encoding, newline="") as f:
        f.write(content)


def _read_resource(path: Path, encoding: str) -> str:
    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError as e:
        raise ResourceNotFoundError(path) from e


async def _read_resource_async(path: Path, encoding: str) -> str:
    return await asyncio.to_thread(_read_resource, path, encoding)


def inline_template(content: str, resolver: Resolver, encoding: str = "utf-8") -> str:
    """Replace every ``templateUrl: '...html'`` with an inline ``template``.

    Templates are read synchronously, one match at a time, in file order.
    """

    def replace(match):
        template_file = resolver(match.group(1))
        logger.debug(f"Inlining template {template_file}")
        template = normalize_whitespace(_read_resource(template_file, encoding))
        return f'template: "{template}"'

    return _TEMPLATE_URL_RE.sub(replace, content)


async def inline_style(content: str, resolver: Resolver, options: Optional[InlineOptions] = None) -> str:
    """Replace the first ``styleUrls: [...]`` with an inline ``styles`` array.

    All stylesheets are loaded and rendered concurrently; the joined result
    keeps the order in which they were declared.
    """
    options = options or InlineOptions()
    match = _STYLE_URLS_RE.search(content)
    if match is None:
        return content

    style_urls = parse_style_urls(match.group(1))

    async def load(style_url: str) -> str:
        style_file = resolver(style_url)
        logger.debug(f"Inlining stylesheet {style_file}")
        raw = await _read_resource_async(style_file, options.encoding)
        rendered = await render_stylesheet_async(raw, style_file, options.styles)
        return normalize_whitespace(rendered)

    styles = await asyncio.gather(*(load(url) for url in style_urls))
    joined = ",\n".join(styles)
    return f"{content[:match.start()]}styles: ['{joined}']{content[match.end():]}"


async def inline_resources_from_string(
    content: str,
    resolver: Resolver,
    options: Optional[InlineOptions] = None,
) -> str:
    """Inline templates, then styles, into one source text."""
    options = options or InlineOptions()
    content = inline_template(content, resolver, options.encoding)
    return await inline_style(content, resolver, options)


async def transform_file(path: Path, options: Optional[InlineOptions] = None) -> FileResult:
    """Inline the resources of one source file and write it back in place."""
    options = options or InlineOptions()
    path = Path(path)
    original = await asyncio.to_thread(_read_source, path, options.encoding)
    inlined = await inline_resources_from_string(original, make_resolver(path), options)

    if inlined == original:
        return FileResult(path=path, status=STATUS_UNCHANGED)

    await asyncio.to_thread(_write_source, path, inlined, options.encoding)
    logger.debug(f"Wrote inlined source {path}")
    return FileResult(path=path, status=STATUS_INLINED)


async def inline_resources(project_path, options: Optional[InlineOptions] = None) -> List[FileResult]:
    """Inline resources in every candidate file under ``project_path``.

    Files are processed concurrently. A failing file is logged and reported
    in its FileResult; it never stops the other files.
    """
    options = options or InlineOptions()
    root = Path(project_path)
    files = await asyncio.to_thread(find_candidate_files, root, options.include, options.exclude)
    logger.debug(f"Found {len(files)} candidate files under {root}")

    semaphore = asyncio.Semaphore(options.max_concurrency) if options.max_concurrency else None

    async def guarded(path: Path) -> FileResult:
        try:
            if semaphore is None:
                return await transform_file(path, options)
            async with semaphore:
                return await transform_file(path, options)
        except Exception as e:
            logger.error(f"An error occurred while inlining {path}: {e}")
            return FileResult(path=path, status=STATUS_FAILED, error=str(e))

    return list(await asyncio.gather(*(guarded(path) for path in files)))


def run_inline_resources(
    project_path: str,
    config_path: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Inline resources for a whole project and return a run summary."""
    if config is None:
        config = load_config(config_path, project_path=project_path)
    options = get_inline_options(config)

    root = Path(project_path)
    if not root.is_dir():
        raise FileNotFoundError(f"Project directory not found: {project_path}")

    logger.info(f"Inlining resources from project: {project_path}")
    started = perf_counter()
    results = asyncio.run(inline_resources(root, options))
    duration = perf_counter() - started

    failures = [
        {"path": str(result.path), "error": result.error}
        for result in results
        if result.status == STATUS_FAILED
    ]
    summary = {
        "status": "completed" if not failures else "completed_with_errors",
        "project_path": str(root),
        "files_total": len(results),
        "files_inlined": sum(1 for r in results if r.status == STATUS_INLINED),
        "files_unchanged": sum(1 for r in results if r.status == STATUS_UNCHANGED),
        "files_failed": len(failures),
        "failures": failures,
        "duration_seconds": round(duration, 3),
    }
    logger.info(
        f"Inlined {summary['files_inlined']} of {summary['files_total']} files "
        f"({summary['files_failed']} failed) in {summary['duration_seconds']}s"
    )
    return summary
