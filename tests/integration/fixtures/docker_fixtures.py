"""Docker fixtures for the database integration tests.

``postgres_container`` brings up the PostgreSQL service from
``docker-compose.test.yml`` once per session. Only tests that touch the
database depend on it; the API tests run against in-memory collaborators.

Environment:
    PYTEST_MANAGE_CONTAINER: ``false`` to use a database you started
        yourself (for example in CI). Defaults to ``true``.
    PYTEST_CLEANUP_CONTAINER: ``true`` to stop the container after the
        session. Defaults to ``false`` so reruns start fast.
"""

import json
import os
import shutil
import subprocess
import time
from collections.abc import Generator
from pathlib import Path

import pytest

COMPOSE_FILE = Path(__file__).parents[3] / "docker-compose.test.yml"
HEALTH_TIMEOUT_SECONDS = 60


@pytest.fixture(scope="session")
def postgres_container() -> Generator[None]:
    """Ensure the PostgreSQL test container is running and healthy."""
    if not _should_manage_container():
        yield
        return

    if shutil.which("docker") is None:
        pytest.skip("Docker is not available to start the test database")

    if _is_container_healthy(COMPOSE_FILE):
        yield
        return

    print("Starting PostgreSQL container for tests...")
    result = _compose(COMPOSE_FILE, "up", "-d")
    if result.returncode != 0:
        _compose(COMPOSE_FILE, "down", "-v")
        pytest.skip(f"Could not start PostgreSQL container: {result.stderr}")

    if not _wait_for_postgres_health(COMPOSE_FILE):
        _compose(COMPOSE_FILE, "down", "-v")
        pytest.fail(
            "PostgreSQL container did not become healthy in time "
            f"({HEALTH_TIMEOUT_SECONDS}s timeout)"
        )

    print("PostgreSQL container is ready!")

    yield

    if _should_cleanup_container():
        print("\nStopping PostgreSQL container...")
        _compose(COMPOSE_FILE, "down", "-v")


def _compose(compose_file: Path, *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(  # noqa: S603
        ["docker", "compose", "-f", str(compose_file), *args],  # noqa: S607
        capture_output=True,
        text=True,
        check=False,
    )


def _should_manage_container() -> bool:
    return os.environ.get("PYTEST_MANAGE_CONTAINER", "true").lower() == "true"


def _should_cleanup_container() -> bool:
    return os.environ.get("PYTEST_CLEANUP_CONTAINER", "false").lower() == "true"


def _is_container_healthy(compose_file: Path) -> bool:
    healthy, _ = _check_container_health(compose_file)
    return healthy


def _wait_for_postgres_health(
    compose_file: Path, timeout: int = HEALTH_TIMEOUT_SECONDS
) -> bool:
    """Poll the container health until it is healthy or ``timeout`` passes."""
    start_time = time.time()
    last_error = None

    while time.time() - start_time < timeout:
        healthy, error = _check_container_health(compose_file)
        if healthy:
            return True
        if error:
            last_error = error
        time.sleep(1)

    if last_error:
        print(f"Last error while checking container health: {last_error}")
    return False


def _check_container_health(compose_file: Path) -> tuple[bool, str | None]:
    try:
        result = _compose(compose_file, "ps", "--format", "json")
    except (subprocess.SubprocessError, OSError) as e:
        return False, str(e)

    if result.returncode != 0:
        return False, result.stderr
    if not result.stdout.strip():
        return False, "No container output"
    return _parse_json_health(result.stdout)


def _parse_json_health(output: str) -> tuple[bool, str | None]:
    """Read ``docker compose ps --format json`` output.

    Newer Compose releases print one JSON object per line instead of a list.
    """
    try:
        data = json.loads(output)
        containers = [data] if isinstance(data, dict) else data
    except json.JSONDecodeError:
        try:
            containers = [json.loads(line) for line in output.splitlines() if line]
        except json.JSONDecodeError:
            return False, "Unable to parse container status"

    if not containers:
        return False, "No containers found"

    for container in containers:
        health = container.get("Health", "").lower()
        state = container.get("State", "").lower()
        if state == "running" and health == "healthy":
            return True, None
        if health == "unhealthy":
            return False, "Container is unhealthy"
        if state != "running":
            return False, f"Container is {state}"
    return False, "Container not yet healthy"
