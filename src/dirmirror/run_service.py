from __future__ import annotations

import logging

from dirmirror.config import MirrorConfig
from dirmirror.confirmation import Frontend
from dirmirror.errors import MirrorError, QuitRequested
from dirmirror.mirror_engine import MirrorEngine
from dirmirror.models import MirrorStats


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def run_mirror(
    config: MirrorConfig,
    frontend: Frontend,
    logger: logging.Logger | None = None,
) -> tuple[int, MirrorStats | None]:
    """Run one mirror and map the outcome to a process exit code.

    Stats are only returned for a completed run.
    """
    log = logger or logging.getLogger("dirmirror.run")
    engine = MirrorEngine(
        source=config.source,
        destination=config.destination,
        policy=config.policy,
        frontend=frontend,
        parallelism=config.parallelism,
        excludes=config.excludes,
    )

    try:
        stats = engine.run()
    except QuitRequested as exc:
        log.warning("%s", exc)
        return EXIT_FAILURE, None
    except MirrorError as exc:
        log.error("%s -> %s failed: %s", config.source, config.destination, exc)
        return EXIT_FAILURE, None

    log.info(
        "%s -> %s | %s",
        config.source,
        config.destination,
        stats.summary_line(),
    )
    return EXIT_SUCCESS, stats
