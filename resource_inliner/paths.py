"""Resolution of resource references relative to their source file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Union

PathLike = Union[str, Path]
Resolver = Callable[[str], Path]


def resolve_resource(base_dir: PathLike, relative_ref: str) -> Path:
    """Join a resource reference onto the directory of the referencing file.

    No filesystem access happens here: a bad reference yields a path that
    does not exist and fails later, when it is read.
    """
    return Path(os.path.normpath(os.path.join(os.fspath(base_dir), relative_ref)))


def make_resolver(file_path: PathLike) -> Resolver:
    """Build a resolver bound to the directory of ``file_path``."""
    base_dir = Path(file_path).parent

    def resolver(relative_ref: str) -> Path:
        return resolve_resource(base_dir, relative_ref)

    return resolver
