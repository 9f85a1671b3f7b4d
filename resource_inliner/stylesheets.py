"""Rendering of stylesheet resources to plain CSS.

LESS sources are compiled with lesscpy. Before compiling, ``@import``
statements are expanded here so that both conventions the components rely
on work: paths relative to the importing file, and paths starting with the
import prefix (``~`` by default) which are looked up as packages under
``node_modules`` (nearest ancestor first) or under configured package roots.

Imports that stay plain CSS imports are hoisted out of the LESS source and
put back in front of the compiled CSS, with their import options removed.
"""

from __future__ import annotations

import asyncio
import io
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

import lesscpy
from loguru import logger

from resource_inliner.config_loader import StyleOptions
from resource_inliner.errors import StylesheetCompileError

# Comments, strings and unquoted url() are matched first so that nothing
# inside them is taken for an import or a brace.
_SKIP = (
    r"""//[^\n]*|/\*.*?\*/"""
    r"""|"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'"""
    r"""|url\([^)]*\)"""
)
_IMPORT_SCAN_RE = re.compile(
    r"""(?P<import>@import\s*(?:\((?P<options>[^)]*)\)\s*)?"""
    r"""(?P<target>url\([^)]*\)|"[^"]*"|'[^']*')"""
    r"""(?P<media>[^;]*);)"""
    rf"""|(?P<skip>{_SKIP})""",
    re.S,
)
_STRUCTURE_RE = re.compile(rf"""(?P<skip>{_SKIP})|(?P<open>\{{)|(?P<close>\}})|(?P<end>;)""", re.S)
_COMMENT_RE = re.compile(r"""(?P<comment>//[^\n]*|/\*.*?\*/)|(?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')""", re.S)
_VARIABLE_RE = re.compile(r"@[\w-]+\s*:")
_MAX_IMPORT_DEPTH = 16


def is_less_stylesheet(path, extensions: Iterable[str] = (".less",)) -> bool:
    """Return True when the file extension marks a LESS stylesheet."""
    suffix = Path(path).suffix.lower()
    return suffix in {ext.lower() for ext in extensions}


def _is_passthrough_import(target: str, options: Set[str]) -> bool:
    if target.startswith("url("):
        return True
    if "less" in options or "inline" in options:
        return False
    path = target[1:-1]
    return (
        "css" in options
        or path.lower().endswith(".css")
        or "://" in path
        or path.startswith("//")
    )


def _css_import_statement(target: str, media: str) -> str:
    if target.startswith("url(") or target[1:-1].lower().endswith(".css"):
        return f"@import {target}{media};"
    return f"@import url({target}){media};"


def _strip_comments(text: str) -> str:
    return _COMMENT_RE.sub(lambda m: m.group("string") or "", text)


def _top_level_statements(text: str) -> List[str]:
    statements = []
    depth = 0
    start = 0
    for match in _STRUCTURE_RE.finditer(text):
        kind = match.lastgroup
        if kind == "open":
            depth += 1
        elif kind == "close":
            depth -= 1
            if depth == 0:
                statements.append(text[start:match.end()])
                start = match.end()
        elif kind == "end" and depth == 0:
            statements.append(text[start:match.end()])
            start = match.end()
    return statements


def reference_only(text: str) -> str:
    """Keep what a ``(reference)`` import contributes without emitting rules.

    That is variable declarations, detached rulesets and parametric mixin
    definitions; plain rulesets, at-rules and CSS imports are dropped.
    Calling a dropped non-parametric ruleset as a mixin fails to compile.
    """
    kept = []
    for statement in _top_level_statements(text):
        body = _strip_comments(statement).strip()
        if _VARIABLE_RE.match(body):
            kept.append(body)
        elif "{" in body and not body.startswith("@") and "(" in body.split("{", 1)[0]:
            kept.append(body)
    return "\n".join(kept)


def check_balanced(text: str, filename) -> None:
    """Raise StylesheetCompileError when braces outside comments and strings don't pair up."""
    depth = 0
    for match in _STRUCTURE_RE.finditer(text):
        if match.lastgroup == "open":
            depth += 1
        elif match.lastgroup == "close":
            depth -= 1
            if depth < 0:
                line = text.count("\n", 0, match.start()) + 1
                raise StylesheetCompileError(filename, f"unexpected '}}' on line {line}")
    if depth:
        raise StylesheetCompileError(filename, f"{depth} unclosed '{{' at end of input")


def _with_less_fallback(candidate: Path) -> List[Path]:
    if candidate.suffix:
        return [candidate]
    return [candidate, candidate.with_name(candidate.name + ".less")]


def _first_existing(candidates: Iterable[Path]) -> Optional[Path]:
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    return None


def resolve_package_import(reference: str, start_dir: Path, package_roots: Iterable[Path] = ()) -> Optional[Path]:
    """Resolve a prefixed import (prefix already stripped) against package roots."""
    start_dir = Path(start_dir).resolve()
    roots = [directory / "node_modules" for directory in (start_dir, *start_dir.parents)]
    roots.extend(Path(root) for root in package_roots)
    for root in roots:
        found = _first_existing(_with_less_fallback(root / reference))
        if found is not None:
            return found
    return None


def resolve_import(reference: str, importer: Path, options: StyleOptions) -> Optional[Path]:
    """Resolve an ``@import`` target as seen from the file ``importer``."""
    prefix = options.import_prefix
    if prefix and reference.startswith(prefix):
        return resolve_package_import(reference[len(prefix):], importer.parent, options.package_roots)
    return _first_existing(_with_less_fallback(importer.parent / reference))


def expand_less_imports(
    text: str,
    filename,
    options: Optional[StyleOptions] = None,
    hoisted: Optional[List[str]] = None,
    _seen: Optional[Set[Path]] = None,
    _depth: int = 0,
) -> str:
    """Replace LESS ``@import`` statements with the content they point to.

    Each file is included at most once. Imports that remain CSS imports are
    rewritten without their option list; when ``hoisted`` is given they are
    appended to it and removed from the text instead.
    """
    options = options or StyleOptions()
    importer = Path(filename)
    seen = _seen if _seen is not None else {importer.resolve()}
    if _depth > _MAX_IMPORT_DEPTH:
        raise StylesheetCompileError(filename, "imports nested too deeply")

    def replace(match):
        if match.group("skip") is not None:
            return match.group(0)

        import_options = {
            opt.strip().lower() for opt in (match.group("options") or "").split(",") if opt.strip()
        }
        target = match.group("target")
        if _is_passthrough_import(target, import_options):
            statement = _css_import_statement(target, match.group("media").rstrip())
            if hoisted is None:
                return statement
            hoisted.append(statement)
            return ""

        reference = target[1:-1]
        resolved = resolve_import(reference, importer, options)
        if resolved is None:
            if "optional" in import_options:
                logger.debug(f"Skipping optional import '{reference}' in {importer}")
                return ""
            raise StylesheetCompileError(filename, f"cannot resolve import '{reference}'")

        if resolved in seen and "multiple" not in import_options:
            return ""
        seen.add(resolved)

        logger.debug(f"Expanding import '{reference}' -> {resolved}")
        content = resolved.read_text(encoding="utf-8")
        if "reference" in import_options:
            content = reference_only(expand_less_imports(content, resolved, options, None, seen, _depth + 1))
        elif "inline" not in import_options:
            content = expand_less_imports(content, resolved, options, hoisted, seen, _depth + 1)

        media = match.group("media").strip()
        if media:
            return f"@media {media} {{\n{content}\n}}"
        return content

    return _IMPORT_SCAN_RE.sub(replace, text)


def compile_less(text: str, filename, options: Optional[StyleOptions] = None) -> str:
    """Compile a LESS source to CSS, raising StylesheetCompileError on failure."""
    hoisted: List[str] = []
    expanded = expand_less_imports(text, filename, options, hoisted)
    check_balanced(expanded, filename)
    try:
        css = lesscpy.compile(io.StringIO(expanded), minify=False)
    except Exception as e:
        raise StylesheetCompileError(filename, e) from e
    if hoisted:
        css = "\n".join(dict.fromkeys(hoisted)) + "\n" + css
    return css


def render_stylesheet(raw_text: str, filename, options: Optional[StyleOptions] = None) -> str:
    """Render a stylesheet resource to plain CSS.

    Plain CSS passes through unchanged; LESS is compiled.
    """
    options = options or StyleOptions()
    if is_less_stylesheet(filename, options.less_extensions):
        logger.debug(f"Compiling LESS stylesheet {filename}")
        return compile_less(raw_text, filename, options)
    return raw_text


async def render_stylesheet_async(raw_text: str, filename, options: Optional[StyleOptions] = None) -> str:
    """Run render_stylesheet without blocking the event loop."""
    return await asyncio.to_thread(render_stylesheet, raw_text, filename, options)
