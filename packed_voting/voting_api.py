# packed_voting/voting_api.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI

from . import config as cfgmod
from .api import voting
from .voting_runtime.atomic_store import SnapshotStore
from .voting_runtime.registry import VotingRegistry, load_registry

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def configure_logging(cfg: Dict[str, Any]) -> None:
    logging.basicConfig(level=cfgmod.get_log_level(cfg), format=LOG_FORMAT)


def build_registry(cfg: Dict[str, Any]) -> VotingRegistry:
    snapshot_store = None
    driver = cfgmod.get_persistence_driver(cfg)
    if driver == "json":
        snapshot_store = SnapshotStore(
            cfgmod.get_data_dir(cfg),
            filename=cfgmod.get_state_filename(cfg),
            keep_backups=cfgmod.get_keep_backups(cfg),
        )
    elif driver != "memory":
        log.warning("unknown persistence driver %r; keeping state in memory", driver)

    return load_registry(
        cfgmod.get_owner(cfg),
        snapshot_store,
        backend=cfgmod.get_backend(cfg),
        enforce_vote_window=cfgmod.get_enforce_vote_window(cfg),
    )


def create_app(cfg: Optional[Dict[str, Any]] = None, registry: Optional[VotingRegistry] = None) -> FastAPI:
    if cfg is None:
        cfg = cfgmod.load_config(os.getcwd())
    configure_logging(cfg)

    app = FastAPI(title="Packed Voting API")
    app.state.config = cfg
    app.state.registry = registry if registry is not None else build_registry(cfg)

    app.include_router(voting.router)

    @app.get("/health")
    def health():
        reg = app.state.registry
        return {"ok": True, "backend": reg.backend, "proposals": reg.proposal_count()}

    log.info(
        "voting api ready: backend=%s owner=%s enforce_vote_window=%s",
        app.state.registry.backend, app.state.registry.owner, app.state.registry.enforce_vote_window,
    )
    return app
