"""Flask web backend for sprint CSV exports"""

from flask import Flask, jsonify

from sprint_exporter.api import sprint_bp


def create_app(client=None) -> Flask:
    """
    Build the Flask app

    Args:
        client: JiraClient used by all requests; built from the environment per
            request when omitted
    """
    app = Flask(__name__)
    app.config["JIRA_CLIENT"] = client
    app.register_blueprint(sprint_bp)

    @app.route("/api/health")
    def health():
        """Liveness check"""
        return jsonify({"status": "ok"})

    return app


app = create_app()


if __name__ == "__main__":
    app.run(debug=True, port=5000)
