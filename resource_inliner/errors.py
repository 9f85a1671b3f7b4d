"""Error types raised while inlining component resources."""


class InlineError(Exception):
    """Base class for all inlining failures."""


class ResourceNotFoundError(InlineError, FileNotFoundError):
    """A referenced template, stylesheet or import target does not exist."""

    def __init__(self, path, referenced_from=None):
        self.path = str(path)
        self.referenced_from = str(referenced_from) if referenced_from else None
        message = f"Resource not found: {self.path}"
        if self.referenced_from:
            message += f" (referenced from {self.referenced_from})"
        super().__init__(message)


class StylesheetCompileError(InlineError):
    """The stylesheet compiler rejected a stylesheet or one of its imports."""

    def __init__(self, filename, reason):
        self.filename = str(filename)
        self.reason = str(reason)
        super().__init__(f"Failed to compile stylesheet {self.filename}: {self.reason}")


class MalformedLiteralError(InlineError, ValueError):
    """A styleUrls literal holds something other than quoted paths."""

    def __init__(self, literal, position):
        self.literal = literal
        self.position = position
        snippet = literal[position:position + 20]
        super().__init__(f"Malformed styleUrls literal at offset {position}: {snippet!r}")
