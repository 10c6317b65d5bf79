#!/usr/bin/env python3
"""HTTP front end for the agent pipeline. Every route is a thin wrapper."""

import logging
import os
import threading

from flask import Flask, jsonify, request

from core.errors import PipelineError
from core.orchestrator import Orchestrator
from core.permissions import LEVEL_TITLES
from utils.analyst import analyze_portfolio

logger = logging.getLogger(__name__)

app = Flask(__name__)
orchestrator = Orchestrator()

# Runs share one session and policy; serialize them
_run_lock = threading.Lock()


def _dump(models):
    return [m.model_dump(mode="json") for m in models]


@app.route("/api/agents")
def api_agents():
    return jsonify([
        {"name": name, "description": desc}
        for name, desc in orchestrator.describe_agents()
    ])


@app.route("/api/run", methods=["POST"])
def api_run():
    """Run the full pipeline and return the run artifact."""
    data = request.get_json(silent=True)
    if not data or not str(data.get("request", "")).strip():
        return jsonify({"error": "Missing request"}), 400

    req = data["request"].strip()
    with _run_lock:
        orchestrator.initialize()
        try:
            artifact = orchestrator.run(req)
        except PipelineError as e:
            logger.error("%s", e)
            return jsonify({"error": str(e), "run_id": e.run_id, "stage": e.stage}), 500

    return jsonify(artifact.model_dump(mode="json"))


@app.route("/api/runs/<run_id>")
def api_get_run(run_id):
    artifact = orchestrator.load_run_artifact(run_id)
    if artifact is None:
        return jsonify({"error": "Run not found"}), 404
    return jsonify(artifact.model_dump(mode="json"))


@app.route("/api/portfolio")
def api_portfolio():
    return jsonify(_dump(orchestrator.memory.list_portfolio()))


@app.route("/api/lessons")
def api_lessons():
    return jsonify(_dump(orchestrator.memory.list_lessons()))


@app.route("/api/session")
def api_session():
    improvements, level = orchestrator.session.snapshot()
    return jsonify({
        "learner_level": level,
        "learner_title": LEVEL_TITLES[level],
        "permission_level": orchestrator.policy.current_level,
        "previous_improvements": list(improvements),
    })


@app.route("/api/analysis")
def api_analysis():
    return jsonify(analyze_portfolio(orchestrator.memory).to_dict())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5001))
    orchestrator.initialize()
    print(f"Agent pipeline running at http://localhost:{port}")
    app.run(debug=False, port=port)
