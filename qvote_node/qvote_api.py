from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI

from .api import elections
from .communities import CommunityRegistry
from .config import configure_logging, election_settings, get_approved_communities, load_config

log = logging.getLogger(__name__)


def create_app(cfg: Optional[Dict[str, Any]] = None) -> FastAPI:
    if cfg is None:
        cfg = load_config(os.getcwd())
    configure_logging(cfg)

    app = FastAPI(title="QVote Node API")

    # Election state is owned by the app instance, not a module global.
    app.state.config = cfg
    app.state.communities = CommunityRegistry(
        settings=election_settings(cfg),
        approved=get_approved_communities(cfg),
    )

    app.include_router(elections.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/communities")
    def communities():
        return {"ok": True, "communities": app.state.communities.community_ids()}

    log.info("qvote node ready")
    return app

