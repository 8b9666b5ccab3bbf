"""
qvote_node/app.py
-----------------
Thin entrypoint for running the QVote FastAPI app via:

    uvicorn qvote_node.app:app

The app is built here, from the working directory's config. Route wiring
lives in qvote_node.qvote_api, which has no import-time side effects.
"""

from .qvote_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m qvote_node.app
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
