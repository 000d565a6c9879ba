"""End-to-end scenario: run a command in a container and follow its logs."""

from __future__ import annotations

import os
import sys

from docker_excess import (
    Channel,
    DockerClient,
    NotFoundError,
    TransportConfig,
)

CONTAINER = os.getenv("DOCKER_EXCESS_DEMO_CONTAINER", "web")
COMMAND = os.getenv("DOCKER_EXCESS_DEMO_COMMAND", "uname -a; echo done >&2")


def log_section(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def write_chunk(channel: Channel, payload: bytes) -> None:
    target = sys.stderr if channel is Channel.STDERR else sys.stdout
    target.write(payload.decode("utf-8", errors="replace"))
    target.flush()


def main() -> None:
    config = TransportConfig.from_env(max_response_size=16 * 1024 * 1024)
    log_level = os.getenv("DOCKER_EXCESS_LOG", "info")

    with DockerClient(config, log_level=log_level) as client:
        log_section(f"Daemon at {config.describe()}")
        client.ping()
        version = client.version()
        print(f"→ Docker {version.get('Version')} (API {version.get('ApiVersion')})")

        log_section(f"Step 1: Inspect {CONTAINER}")
        outcome = client.execute("GET", f"/containers/{CONTAINER}/json")
        if isinstance(outcome.error, NotFoundError):
            print(f"→ Container {CONTAINER} does not exist")
            return
        details = outcome.json()
        tty = bool(details.get("Config", {}).get("Tty"))
        print(f"→ State={details.get('State', {}).get('Status')} tty={tty}")

        log_section("Step 2: Exec")
        created = client.execute(
            "POST",
            f"/containers/{CONTAINER}/exec",
            {"AttachStdout": True, "AttachStderr": True, "Tty": False, "Cmd": ["/bin/sh", "-c", COMMAND]},
        ).json()
        exec_id = created["Id"]
        frames = client.stream(
            "POST", f"/exec/{exec_id}/start", write_chunk, body={"Detach": False, "Tty": False}
        )
        exit_code = client.execute("GET", f"/exec/{exec_id}/json").json().get("ExitCode")
        print(f"→ {frames} frames, exit code {exit_code}")

        log_section("Step 3: Last 20 log lines")
        client.stream(
            "GET",
            f"/containers/{CONTAINER}/logs?stdout=1&stderr=1&tail=20",
            write_chunk,
            tty=tty,
        )

        if client.last_error():
            print(f"→ Last error: {client.last_error()}")


if __name__ == "__main__":
    main()
