"""Field-level validation errors with path prefixing and merging."""

from __future__ import annotations

from typing import Iterable, Optional

_CURRENT_FIELD = ""


def _is_index(part: str) -> bool:
    return part.startswith("[") and part.endswith("]")


def _flatten(parts: Iterable[str]) -> str:
    """Join path segments with dots, gluing index segments to their parent."""
    out: list[str] = []
    for part in parts:
        for piece in part.split("."):
            if piece == _CURRENT_FIELD:
                continue
            if out and _is_index(piece):
                out[-1] += piece
            else:
                out.append(piece)
    return ".".join(out)


class FieldError(ValueError):
    """A validation error attached to one or more field paths.

    Errors can be nested with :meth:`also` and moved under a parent field
    with :meth:`via_field`; ``str()`` renders the merged, sorted result.
    """

    def __init__(self, message: str = "", paths: Iterable[str] = (), details: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.paths = list(paths)
        self.details = details
        self._children: list[FieldError] = []

    def _copy(self) -> FieldError:
        clone = FieldError(self.message, self.paths, self.details)
        clone._children = list(self._children)
        return clone

    def _normalized(self) -> list[FieldError]:
        result: list[FieldError] = []
        if self.message:
            result.append(
                FieldError(self.message, [_flatten([p]) for p in self.paths], self.details)
            )
        for child in self._children:
            result.extend(child._normalized())
        return result

    def via_field(self, *prefix: str) -> FieldError:
        """Return a copy with every path placed under the given field prefix."""
        combined = FieldError()
        for err in self._normalized():
            err.paths = [_flatten([*prefix, path]) for path in err.paths]
            combined._children.append(err)
        return combined

    def via_field_key(self, field: str, key: str) -> FieldError:
        """Return a copy with every path placed under ``field[key]``."""
        return self.via_field(f"[{key}]").via_field(field)

    def also(self, *errs: Optional[FieldError]) -> Optional[FieldError]:
        """Combine this error with others; ``None`` entries are ignored."""
        combined = self._copy()
        for err in errs:
            if err is not None:
                combined._children.extend(err._normalized())
        if not combined.message and not combined._children:
            return None
        return combined

    def __str__(self) -> str:
        merged: dict[tuple[str, str], list[str]] = {}
        for err in self._normalized():
            merged.setdefault((err.message, err.details), []).extend(err.paths)
        lines = []
        for message, details in sorted(merged):
            text = f"{message}: {', '.join(sorted(merged[(message, details)]))}"
            if details:
                text += "\n" + details
            lines.append(text)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"FieldError({str(self)!r})"


def err_missing_field(*field_paths: str) -> FieldError:
    """Error for one or more required fields that are absent."""
    return FieldError("missing field(s)", field_paths)


def err_invalid_value(value: object, field_path: str) -> FieldError:
    """Error for a field holding a value that is not allowed."""
    return FieldError(f"invalid value: {value}", [field_path])


def combine(*errs: Optional[FieldError]) -> Optional[FieldError]:
    """Merge any number of errors, returning ``None`` if there are none."""
    return FieldError().also(*errs)