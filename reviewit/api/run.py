"""Wiring for `reviewit server`: store, orchestrator, API app and HTTP server.

Accepting a merge request returns at once; the integration job clones the
project, applies the current patch with git am and pushes it, then records
the outcome on the merge request.
"""

import logging
from pathlib import Path

from reviewit.api.handlers import ApiApp
from reviewit.api.server import run_api_server
from reviewit.config import AppConfig
from reviewit.services.integration import IntegrationOrchestrator
from reviewit.services.store import Store

LOG = logging.getLogger("reviewit.api.run")


def build_app(config: AppConfig) -> ApiApp:
    store = Store(Path(config.store.data_dir))
    orchestrator = IntegrationOrchestrator(
        store,
        Path(config.workspace.base_dir),
        local_ref=config.integration.local_ref,
    )
    return ApiApp(config, store, orchestrator)


def run_server(config: AppConfig) -> None:
    """Serve until interrupted; running jobs get a short grace period on the way out."""
    app = build_app(config)
    LOG.info(
        "Review it! server started | data_dir=%s | workspaces=%s",
        config.store.data_dir,
        config.workspace.base_dir,
    )
    try:
        run_api_server(app)
    finally:
        running = app.orchestrator.supervisor.running()
        if running:
            LOG.info("Waiting for %s running job(s)", len(running))
            app.orchestrator.supervisor.wait_all(timeout=30)
