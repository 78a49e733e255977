"""
packed_voting/app.py
--------------------
Thin entrypoint for running the voting API via:

    uvicorn packed_voting.app:app

All real route wiring lives in packed_voting.voting_api.
"""

from .voting_api import create_app

app = create_app()
