"""Encoding and decoding of dotted/bracketed flat-record paths."""

import re
from typing import List, Sequence
from .models.path_segment import PathSegment, RESERVED_CHARACTERS
from .types import MalformedPathError

_TOKEN_PATTERN = re.compile(r"^([^.\[\]]+)(?:\[(\d+)\])?$")


class PathCodec:
    """
    Stateless codec between path strings and segment sequences.

    Grammar: tokens separated by ``.``; a token is a name optionally followed
    by a single ``[digits]`` index, e.g. ``orders[2].total``. Names may not
    contain ``.``, ``[`` or ``]``; such names are rejected rather than
    escaped.
    """

    @staticmethod
    def encode(segments: Sequence[PathSegment]) -> str:
        """
        Render segments as a path string.

        Args:
            segments: Segments from the root to the leaf

        Returns:
            Path string such as ``orders[2].total``

        Raises:
            MalformedPathError: If the sequence is empty
        """
        if not segments:
            raise MalformedPathError("Cannot encode an empty segment sequence", path="")

        return ".".join(str(segment) for segment in segments)

    @staticmethod
    def decode(path: str) -> List[PathSegment]:
        """
        Tokenize a path string into segments.

        Args:
            path: Path string previously produced by ``encode``

        Returns:
            List of PathSegment instances

        Raises:
            MalformedPathError: If any token does not match the grammar
        """
        if not isinstance(path, str) or not path:
            raise MalformedPathError("Path cannot be empty", path=str(path))

        segments = []
        for token in path.split("."):
            match = _TOKEN_PATTERN.match(token)
            if match is None:
                raise MalformedPathError(
                    f"Malformed path segment {token!r} in {path!r}",
                    path=path,
                    segment=token
                )

            name, index = match.group(1), match.group(2)
            if index is None:
                segments.append(PathSegment(name))
            else:
                segments.append(PathSegment(name, is_array_index=True, index=int(index)))

        return segments

    @staticmethod
    def join(base_path: str, name: str) -> str:
        """Append an object-property segment to a path."""
        PathCodec.validate_name(name, base_path)
        return f"{base_path}.{name}" if base_path else name

    @staticmethod
    def index(base_path: str, position: int) -> str:
        """Append an array index to the last segment of a path."""
        if not base_path:
            raise MalformedPathError("Array index requires a named parent path", path=f"[{position}]")
        if position < 0:
            raise MalformedPathError(f"Negative array index {position}", path=base_path)
        if base_path.endswith("]"):
            # One index per segment; nested arrays are embedded, not indexed.
            raise MalformedPathError(
                f"Path {base_path!r} already ends with an array index",
                path=base_path
            )
        return f"{base_path}[{position}]"

    @staticmethod
    def count_key(base_path: str) -> str:
        """Synthetic key holding the element count of a summarized array."""
        return f"{base_path}_Count"

    @staticmethod
    def validate_name(name: str, base_path: str = "") -> None:
        """
        Reject property names that cannot be represented in a path.

        Raises:
            MalformedPathError: If the name is empty or uses a reserved character
        """
        if not isinstance(name, str) or not name:
            raise MalformedPathError(
                f"Empty property name under {base_path or 'root'}",
                path=base_path,
                segment=str(name)
            )

        if any(char in name for char in RESERVED_CHARACTERS):
            raise MalformedPathError(
                f"Property name {name!r} contains a reserved path character ('.', '[' or ']')",
                path=f"{base_path}.{name}" if base_path else name,
                segment=name
            )

    @staticmethod
    def is_nested_field(key: str) -> bool:
        """Check whether a flat key denotes a nested or array position."""
        if not key:
            return False

        return "." in key or "[" in key or "]" in key

    @staticmethod
    def root_name(key: str) -> str:
        """Name of the top-level property a path belongs to."""
        return PathCodec.decode(key)[0].name
