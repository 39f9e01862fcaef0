"""
server.py

Flask application serving the flame graph of one loaded profile.
"""

import logging

from flask import Flask, Response, redirect, request
from jinja2 import TemplateError

from .errors import SerializationError
from .exporters.html import FlameGraphConfig, render_flamegraph, render_page, select_sample_index
from .flamegraph import build_profile_tree, to_json

logger = logging.getLogger(__name__)


def create_app(profile, config: FlameGraphConfig = None) -> Flask:
    """Create the web UI for `profile`, which is shared read-only by all requests."""
    config = config or FlameGraphConfig()
    app = Flask(__name__)
    app.config["PROFILE"] = profile

    @app.route("/")
    def index():
        return redirect(config.base_url)

    @app.route(config.base_url)
    def flamegraph():
        try:
            page = render_flamegraph(app.config["PROFILE"], request.args.get("t"), config)
        except SerializationError:
            logger.exception("error serializing flame graph")
            return Response("error serializing flame graph", status=500, mimetype="text/plain")
        try:
            html = render_page(page)
        except TemplateError:
            logger.exception("internal template error")
            return Response("internal template error", status=500, mimetype="text/plain")
        return Response(html, mimetype="text/html")

    @app.route(config.base_url + ".json")
    def flamegraph_json():
        profile = app.config["PROFILE"]
        index = select_sample_index(profile, request.args.get("t"), config)
        try:
            data = to_json(build_profile_tree(profile, index))
        except SerializationError:
            logger.exception("error serializing flame graph")
            return Response("error serializing flame graph", status=500, mimetype="text/plain")
        return Response(str(data), mimetype="application/json")

    return app
