from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Tuple

from .exceptions import ConfigurationError
from .transforms import Transform, TransformRegistry

BASE_NAMESPACE = "base"

# First ":" not escaped with a backslash
_NAMESPACE_SEP = re.compile(r"(?<!\\):")


@dataclass(frozen=True)
class FieldSpec:
    """
    A parsed field request.

    - raw: the original string, also used as the output name in records
    - namespace: data source key ("base" when omitted)
    - field: the raw field name understood by the source
    - transform_names / transforms: ordered transform chain, applied left to right
    """

    raw: str
    namespace: str
    field: str
    transform_names: Tuple[str, ...] = ()
    transforms: Tuple[Transform, ...] = field(default=(), compare=False, repr=False)

    def apply(self, value: Any) -> Any:
        for fn in self.transforms:
            value = fn(value)
        return value

    @property
    def has_transforms(self) -> bool:
        return bool(self.transforms)


def split_field(raw: str) -> Tuple[str, str, Tuple[str, ...]]:
    """
    Split ``"[namespace:]field[|t1|t2]"`` into its three parts without
    resolving transforms.
    """
    if not isinstance(raw, str) or not raw:
        raise ConfigurationError(f"Invalid field spec: {raw!r}")

    head, _, trans = raw.partition("|")
    match = _NAMESPACE_SEP.search(head)
    if match is None:
        namespace, name = BASE_NAMESPACE, head
    else:
        namespace, name = head[:match.start()] or BASE_NAMESPACE, head[match.end():]
    name = name.replace("\\:", ":")

    names = tuple(t for t in trans.split("|") if t) if trans else ()
    return namespace, name, names


def parse_field(raw: str, registry: TransformRegistry) -> FieldSpec:
    namespace, name, names = split_field(raw)
    return FieldSpec(
        raw=raw,
        namespace=namespace,
        field=name,
        transform_names=names,
        transforms=tuple(registry.resolve_chain(list(names))),
    )
