"""Tests for concurrent singleton construction."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from diboot.container import Container
from diboot.exceptions import DIBootCircularDependencyError
from diboot.injectable import injectable
from diboot.lock_mode import LockMode

WORKERS = 8


@injectable
class SlowService:
    instances = 0

    def __init__(self) -> None:
        time.sleep(0.01)
        type(self).instances += 1


@injectable
class CrossA:
    def __init__(self, b: "CrossB") -> None:
        self.b = b


@injectable
class CrossB:
    def __init__(self, a: CrossA) -> None:
        self.a = a


def _resolve_in_daemon_threads(container: Container, keys: list[Any]) -> list[Any]:
    barrier = threading.Barrier(len(keys))
    outcomes: list[Any] = [None] * len(keys)

    def worker(index: int) -> None:
        barrier.wait()
        try:
            outcomes[index] = container.resolve(keys[index])
        except Exception as exc:  # noqa: BLE001
            outcomes[index] = exc

    threads = [
        threading.Thread(target=worker, args=(index,), daemon=True) for index in range(len(keys))
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert [thread.is_alive() for thread in threads] == [False] * len(keys)
    return outcomes


def _resolve_concurrently(container: Container, key: Any) -> list[Any]:
    barrier = threading.Barrier(WORKERS)

    def worker() -> Any:
        barrier.wait()
        return container.resolve(key)

    with ThreadPoolExecutor(max_workers=WORKERS) as executor:
        futures = [executor.submit(worker) for _ in range(WORKERS)]
        return [future.result() for future in futures]


def test_factory_runs_once_under_contention(threaded_container: Container) -> None:
    calls: list[int] = []
    calls_lock = threading.Lock()

    def factory() -> object:
        with calls_lock:
            calls.append(1)
        time.sleep(0.01)
        return object()

    threaded_container.singleton("service", factory)

    results = _resolve_concurrently(threaded_container, "service")

    assert len(calls) == 1
    assert all(result is results[0] for result in results)


def test_automatic_construction_runs_once_under_contention(
    threaded_container: Container,
) -> None:
    SlowService.instances = 0

    results = _resolve_concurrently(threaded_container, SlowService)

    assert SlowService.instances == 1
    assert all(result is results[0] for result in results)


def test_contextual_singletons_lock_per_context() -> None:
    container = Container(lock_mode=LockMode.THREAD)
    container.context("storage", "local", lambda: object())
    container.context("storage", "s3", lambda: object())

    barrier = threading.Barrier(WORKERS)

    def worker(index: int) -> Any:
        barrier.wait()
        return container.resolve("storage", "local" if index % 2 else "s3")

    with ThreadPoolExecutor(max_workers=WORKERS) as executor:
        results = list(executor.map(worker, range(WORKERS)))

    local = container.resolve("storage", "local")
    s3 = container.resolve("storage", "s3")
    assert local is not s3
    assert {id(result) for result in results} == {id(local), id(s3)}


def test_reentrant_factory_under_thread_lock(threaded_container: Container) -> None:
    threaded_container.singleton("inner", lambda: "inner")
    threaded_container.singleton("outer", lambda: f"{threaded_container.resolve('inner')}-outer")

    assert threaded_container.resolve("outer") == "inner-outer"


def test_factory_cycle_across_threads_raises(threaded_container: Container) -> None:
    def build_a() -> Any:
        time.sleep(0.05)
        return threaded_container.resolve("b")

    def build_b() -> Any:
        time.sleep(0.05)
        return threaded_container.resolve("a")

    threaded_container.singleton("a", build_a)
    threaded_container.singleton("b", build_b)

    outcomes = _resolve_in_daemon_threads(threaded_container, ["a", "b"])

    assert all(isinstance(outcome, DIBootCircularDependencyError) for outcome in outcomes)
    chains = {outcome.chain for outcome in outcomes}
    assert chains <= {("a", "b", "a"), ("b", "a", "b")}


def test_constructor_cycle_across_threads_raises(threaded_container: Container) -> None:
    outcomes = _resolve_in_daemon_threads(threaded_container, [CrossA, CrossB])

    assert all(isinstance(outcome, DIBootCircularDependencyError) for outcome in outcomes)


def test_locks_are_released_after_cross_thread_cycle(threaded_container: Container) -> None:
    threaded_container.singleton("a", lambda: threaded_container.resolve("b"))
    threaded_container.singleton("b", lambda: threaded_container.resolve("a"))
    _resolve_in_daemon_threads(threaded_container, ["a", "b"])

    threaded_container.singleton("b", lambda: "fixed")

    assert threaded_container.resolve("a") == "fixed"
