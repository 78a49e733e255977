from __future__ import annotations

import os

import uvicorn

from . import config as cfgmod
from .voting_api import create_app


def main() -> None:
    cfg = cfgmod.load_config(os.getcwd())
    app = create_app(cfg)
    uvicorn.run(app, host=cfgmod.get_bind_host(cfg), port=cfgmod.get_bind_port(cfg))


if __name__ == "__main__":
    main()
