from __future__ import annotations

import datetime
import decimal
import inspect
import pathlib
import types
import uuid
from dataclasses import dataclass
from inspect import Parameter
from typing import Any, TypeGuard


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a plain runtime class, not a generic alias."""
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


@dataclass(frozen=True, slots=True)
class ConstructibleTypePolicy:
    """Internal policy deciding which dependency types automatic construction may build.

    Builtins (``str``, ``int``, ``bool``, ``bytes``, ``NoneType`` and the
    rest of the ``builtins`` module), value types from the standard library
    and missing annotations are never built: a container cannot invent a
    meaningful value for them.
    """

    ignored_base_types: tuple[type[Any], ...] = (
        pathlib.PurePath,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
        decimal.Decimal,
    )

    def is_primitive(self, candidate: object) -> bool:
        """Return true for dependency markers that can never be constructed.

        Args:
            candidate: Dependency type taken from a capability record.

        """
        if candidate is Parameter.empty or candidate is None:
            return True
        if not is_runtime_class(candidate):
            return False
        if candidate.__module__ == "builtins":
            return True
        return issubclass(candidate, self.ignored_base_types)

    def is_constructible(self, candidate: object) -> TypeGuard[type[Any]]:
        """Return true when a candidate can be instantiated by automatic construction.

        Args:
            candidate: Dependency type taken from a capability record.

        """
        if self.is_primitive(candidate):
            return False
        if not is_runtime_class(candidate):
            return False
        if inspect.isabstract(candidate) or getattr(candidate, "_is_protocol", False):
            return False
        return not issubclass(candidate, type)

    def has_required_parameters(self, cls: type[Any]) -> bool:
        """Return true when ``cls()`` would fail for lack of arguments.

        Args:
            cls: Unmarked class considered for automatic construction.

        """
        try:
            parameters = inspect.signature(cls).parameters.values()
        except (TypeError, ValueError):
            return False
        return any(
            parameter.default is Parameter.empty
            and parameter.kind not in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)
            for parameter in parameters
        )
