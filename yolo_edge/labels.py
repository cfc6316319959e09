from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Sequence, Tuple, Union


PathLike = Union[str, Path]


class LabelTable(Sequence[str]):
    """
    Read-only, index-addressable class names.

    Class index `i` always maps to `names[i]`. Label files that start with a
    reserved background entry are loaded with `has_background=True`, which
    drops that first line so lookups and colors use the same index.
    """

    def __init__(self, names: Iterable[str]):
        self._names: Tuple[str, ...] = tuple(names)

    @classmethod
    def from_file(cls, path: PathLike, *, has_background: bool = False) -> "LabelTable":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Labels file not found: {path}")

        lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
        while lines and not lines[-1]:
            lines.pop()
        if has_background and lines:
            lines = lines[1:]
        if not lines:
            raise ValueError(f"Labels file is empty: {path}")
        return cls(lines)

    def name_for(self, class_index: int) -> str:
        if 0 <= class_index < len(self._names):
            return self._names[class_index]
        return str(class_index)

    def __getitem__(self, index):
        return self._names[index]

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        return f"LabelTable({len(self._names)} classes)"
