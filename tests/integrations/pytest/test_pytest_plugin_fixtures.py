from __future__ import annotations

import pytest

from diboot import Application, Container, ServiceProvider

pytest_plugins = ["diboot.integrations.pytest_plugin"]


class _Clock:
    def __init__(self) -> None:
        self.ticks = 0


class _ClockProvider(ServiceProvider):
    def register(self) -> None:
        self.container.singleton("clock", _Clock)

    def boot(self) -> None:
        self.container.resolve("clock").ticks += 1


@pytest.fixture()
def diboot_providers() -> list[type[ServiceProvider]]:
    return [_ClockProvider]


def test_application_boots_overridden_providers(diboot_application: Application) -> None:
    assert diboot_application.booted is True
    assert diboot_application.resolve("clock").ticks == 1


def test_application_uses_container_fixture(
    diboot_application: Application,
    diboot_container: Container,
) -> None:
    assert diboot_application.container is diboot_container
    assert diboot_container.resolve("app") is diboot_application


def test_config_provider_is_skipped(diboot_application: Application) -> None:
    assert diboot_application.container.has("config") is False
    assert diboot_application.booted_providers[0].__class__ is _ClockProvider


def test_containers_are_isolated_between_tests(diboot_container: Container) -> None:
    assert diboot_container.has("clock") is False
    diboot_container.singleton("clock", _Clock)
