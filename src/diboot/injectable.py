from __future__ import annotations

import inspect
import logging
import sys
import weakref
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from inspect import Parameter
from typing import Any, TypeVar, get_type_hints, overload

from diboot.exceptions import DIBootInvalidRegistrationError

C = TypeVar("C", bound=type[Any])

logger = logging.getLogger(__name__)

_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)

NO_TYPE: Any = Parameter.empty
"""Dependency marker recorded for constructor parameters without an annotation."""


@dataclass(frozen=True, slots=True)
class InjectableParameter:
    """A constructor parameter recorded by ``injectable``."""

    name: str
    annotation: Any
    position: int
    """Index in the ``__init__`` signature, ``self`` excluded."""

    keyword_only: bool = False


@dataclass(frozen=True, slots=True)
class CapabilityRecord:
    """Ordered constructor dependencies of an injectable class.

    Records are immutable. Marking a class again replaces its record as a
    whole; nothing is merged.
    """

    parameters: tuple[InjectableParameter, ...] = ()

    @property
    def dependencies(self) -> tuple[Any, ...]:
        """Dependency types in constructor order."""
        return tuple(parameter.annotation for parameter in self.parameters)

    @property
    def has_forward_references(self) -> bool:
        return any(isinstance(parameter.annotation, str) for parameter in self.parameters)


_records: weakref.WeakKeyDictionary[type[Any], CapabilityRecord] = weakref.WeakKeyDictionary()


@overload
def injectable(cls: C, /) -> C: ...


@overload
def injectable(*, dependencies: Sequence[Any] | None = None) -> Callable[[C], C]: ...


def injectable(
    cls: C | None = None,
    /,
    *,
    dependencies: Sequence[Any] | None = None,
) -> C | Callable[[C], C]:
    """Mark a class as constructible by the container.

    The constructor's parameter types are read once, when the class is
    defined, and stored as the class's capability record. Automatic
    construction later resolves each recorded type in order and calls the
    constructor with the results.

    Args:
        cls: Class to mark when the decorator is used without parentheses.
        dependencies: Explicit dependency types, in positional order. Use
            this when annotations are unavailable or should be overridden.

    Returns:
        The class itself, unchanged, or a decorator when called with
        arguments.

    Raises:
        DIBootInvalidRegistrationError: If the decorated object is not a class.

    Examples:
        .. code-block:: python

            @injectable
            class Mailer: ...


            @injectable
            class Newsletter:
                def __init__(self, mailer: Mailer) -> None:
                    self.mailer = mailer

    """

    def decorator(target: C) -> C:
        if not inspect.isclass(target):
            msg = f"@injectable can only decorate classes, got {target!r}."
            raise DIBootInvalidRegistrationError(msg)

        if dependencies is None:
            parameters = _extract_parameters(target)
        else:
            parameters = tuple(
                InjectableParameter(name=f"arg{index}", annotation=dependency, position=index)
                for index, dependency in enumerate(dependencies)
            )

        if target in _records:
            logger.debug("Replacing capability record of %s", target.__qualname__)
        _records[target] = CapabilityRecord(parameters=parameters)
        return target

    if cls is not None:
        return decorator(cls)
    return decorator


def get_capability_record(cls: type[Any]) -> CapabilityRecord | None:
    """Return the capability record of ``cls``, or ``None`` when it was never marked.

    Records belong to the exact class they were declared on; subclasses are
    not covered by their parent's record.
    """
    try:
        return _records.get(cls)
    except TypeError:
        return None


def is_injectable(cls: object) -> bool:
    """Return whether ``cls`` was marked with ``injectable``."""
    return isinstance(cls, type) and cls in _records


def resolve_forward_references(cls: type[Any]) -> CapabilityRecord | None:
    """Evaluate string annotations left over from class definition time.

    Classes that reference types defined later in their module keep string
    annotations in their record. The first construction evaluates them once
    and stores the resolved record in place of the old one.
    """
    record = get_capability_record(cls)
    if record is None or not record.has_forward_references:
        return record

    hints = _type_hints(cls)
    resolved = CapabilityRecord(
        parameters=tuple(
            InjectableParameter(
                name=parameter.name,
                annotation=hints.get(parameter.name, parameter.annotation),
                position=parameter.position,
                keyword_only=parameter.keyword_only,
            )
            for parameter in record.parameters
        ),
    )
    _records[cls] = resolved
    return resolved


def _extract_parameters(cls: type[Any]) -> tuple[InjectableParameter, ...]:
    init = cls.__init__
    if init is object.__init__:
        return ()

    try:
        signature_parameters = tuple(inspect.signature(init).parameters.values())[1:]
    except (TypeError, ValueError):
        return ()

    hints = _type_hints(cls)
    parameters: list[InjectableParameter] = []
    for position, parameter in enumerate(signature_parameters):
        if parameter.default is not Parameter.empty:
            continue
        if parameter.kind not in (*_POSITIONAL_KINDS, Parameter.KEYWORD_ONLY):
            continue
        parameters.append(
            InjectableParameter(
                name=parameter.name,
                annotation=hints.get(parameter.name, parameter.annotation),
                position=position,
                keyword_only=parameter.kind is Parameter.KEYWORD_ONLY,
            ),
        )
    return tuple(parameters)


def _type_hints(cls: type[Any]) -> dict[str, Any]:
    module = sys.modules.get(cls.__module__)
    globalns = vars(module) if module is not None else None
    try:
        hints = get_type_hints(cls.__init__, globalns=globalns, localns=dict(vars(cls)))
    except (NameError, TypeError, AttributeError):
        return {}
    hints.pop("return", None)
    return hints


__all__ = [
    "NO_TYPE",
    "CapabilityRecord",
    "InjectableParameter",
    "get_capability_record",
    "injectable",
    "is_injectable",
    "resolve_forward_references",
]
