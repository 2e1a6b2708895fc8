"""
Named, chainable field transforms.

Transforms are pure single-argument functions applied to a record value when a
field is requested as ``"namespace:field|transform1|transform2"``. They are
resolved once per field when the field spec is parsed, so an unknown name fails
at setup rather than while data is flowing.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ConfigurationError

Transform = Callable[[Any], Any]


def neglog10(x: Any) -> Optional[float]:
    if x is None:
        return None
    x = float(x)
    if x <= 0:
        return math.inf if x == 0 else math.nan
    return -math.log10(x)


def log10(x: Any) -> Optional[float]:
    if x is None:
        return None
    x = float(x)
    if x <= 0:
        return -math.inf if x == 0 else math.nan
    return math.log10(x)


def scinotation(x: Any) -> Optional[str]:
    """
    Format a number for display: fixed 3 decimals when its order of magnitude
    is within +/-3, otherwise ``"m.mm × 10^e"``.
    """
    if x is None:
        return None
    x = float(x)
    if x == 0:
        return f"{x:.3f}"
    if abs(x) > 1:
        exp = math.ceil(math.log10(abs(x)))
    else:
        exp = math.floor(math.log10(abs(x)))
    if abs(exp) <= 3:
        return f"{x:.3f}"
    mantissa, power = f"{x:.2e}".split("e")
    return f"{mantissa} × 10^{int(power)}"


class TransformRegistry:
    """
    Registry of named transforms.

    One instance is created per application (see ``default_transform_registry``)
    and passed explicitly to whatever parses field specs; there is no
    module-level registry.
    """

    def __init__(self):
        self._transforms: Dict[str, Transform] = {}

    def set(self, name: str, fn: Optional[Transform]) -> None:
        if name.startswith("|"):
            raise ConfigurationError("transformation name should not start with a pipe")
        if fn is None:
            self._transforms.pop(name, None)
        else:
            self._transforms[name] = fn

    def add(self, name: str, fn: Transform) -> None:
        if name in self._transforms:
            raise ConfigurationError(f"transformation already exists with name: {name}")
        self.set(name, fn)

    def get(self, name: str) -> Transform:
        try:
            return self._transforms[name]
        except KeyError:
            raise ConfigurationError(f"transformation {name} not found") from None

    def resolve_chain(self, names: List[str]) -> List[Transform]:
        return [self.get(n) for n in names]

    def compose(self, spec: str) -> Optional[Transform]:
        """
        Build one callable from a ``"|a|b"`` suffix (or a bare ``"a"``).
        Returns None for an empty spec.
        """
        names = [n for n in spec.split("|") if n]
        if not names:
            return None
        chain = self.resolve_chain(names)
        if len(chain) == 1:
            return chain[0]

        def _composed(value: Any) -> Any:
            for fn in chain:
                value = fn(value)
            return value

        return _composed

    def list(self) -> List[str]:
        return list(self._transforms.keys())


def default_transform_registry() -> TransformRegistry:
    registry = TransformRegistry()
    registry.add("neglog10", neglog10)
    registry.add("log10", log10)
    registry.add("scinotation", scinotation)
    return registry
