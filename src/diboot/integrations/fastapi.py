from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

try:
    from fastapi import FastAPI, Request
except ModuleNotFoundError as exc:  # pragma: no cover - exercised in optional import scenarios
    message = "FastAPI integration requires fastapi. Install with 'diboot[fastapi]'."
    raise ModuleNotFoundError(message) from exc

if TYPE_CHECKING:
    from diboot.container import Container

_STATE_ATTR = "diboot_container"


def setup_diboot(app: FastAPI, container: Container) -> None:
    """Attach ``container`` to ``app`` so ``Resolve`` dependencies can find it."""
    setattr(app.state, _STATE_ATTR, container)


def get_container(request: Request) -> Container:
    """Return the container attached with ``setup_diboot``.

    Raises:
        RuntimeError: If ``setup_diboot`` was not called for the app.

    """
    container = getattr(request.app.state, _STATE_ATTR, None)
    if container is None:
        msg = "No diboot container attached to this app. Call setup_diboot(app, container) first."
        raise RuntimeError(msg)
    return container


def Resolve(key: Any, context_key: str | None = None) -> Callable[[Request], Any]:  # noqa: N802
    """Build a FastAPI dependency that resolves ``key`` from the app container.

    Examples:
        .. code-block:: python

            @app.get("/send")
            def send(mailer: Mailer = Depends(Resolve("mailer"))) -> dict[str, int]:
                return {"sent": mailer.send()}

    """

    def dependency(request: Request) -> Any:
        return get_container(request).resolve(key, context_key)

    return dependency


__all__ = ["Resolve", "get_container", "setup_diboot"]
