# wc_pipeline/wc_server.py
import os
import sys

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.serving import make_server

from wc_errors import ConfigurationMismatchError, RequestError, WordCountError
from wc_map import map_chunk
from wc_reduce import reduce_partials
from wc_split import DEFAULT_PARTS, split
from wc_store import make_blob_store

# --- Constants ---
HOST = '0.0.0.0'
PORT = 8080
ROLES = ('splitter', 'mapper', 'reducer')


def require_arg(name):
    value = request.args.get(name)
    if not value:
        raise RequestError(f"Missing '{name}' parameter.")
    return value


def create_app(role, store):
    """Build the Flask app for one role. The role is fixed for the app's lifetime."""
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}, expected one of {', '.join(ROLES)}")

    app = Flask(__name__)
    CORS(app)
    app.config['WC_ROLE'] = role

    def require_role(expected):
        if role != expected:
            raise ConfigurationMismatchError(f"This task is not a {expected} (configured as {role})")

    @app.errorhandler(WordCountError)
    def handle_wordcount_error(e):
        print(f"[!] {request.path} failed ({e.kind.value}): {e}")
        return jsonify(e.to_payload()), e.http_status

    @app.route('/api/role', methods=['GET'])
    def get_role():
        return jsonify({"role": role})

    # -------- SPLITTER --------
    @app.route('/split', methods=['GET'])
    def split_api():
        require_role('splitter')
        source = require_arg('input_s3')
        prefix = require_arg('out_prefix')
        raw_parts = request.args.get('parts', str(DEFAULT_PARTS))
        try:
            parts = int(raw_parts)
        except ValueError:
            raise RequestError(f"parts must be an integer, got {raw_parts!r}") from None
        return jsonify(split(store, source, parts, prefix))

    # -------- MAPPER --------
    @app.route('/map', methods=['GET'])
    def map_api():
        require_role('mapper')
        out = map_chunk(store, require_arg('chunk_s3'), require_arg('out_s3'))
        return jsonify({"output": out})

    # -------- REDUCER --------
    @app.route('/reduce', methods=['GET'])
    def reduce_api():
        require_role('reducer')
        out_s3 = require_arg('out_s3')
        inputs = request.args.getlist('in')
        return jsonify({"output": reduce_partials(store, inputs, out_s3)})

    return app


def main():
    role = os.getenv('MODE', '')
    host = os.getenv('HOST', HOST)
    port = int(os.getenv('PORT', PORT))
    if role not in ROLES:
        print(f"[!!!] CRITICAL: MODE must be one of {', '.join(ROLES)}, got {role!r}", file=sys.stderr)
        sys.exit(1)

    app = create_app(role, make_blob_store())
    server = make_server(host, port, app, threaded=True)
    print(f"[*] Starting {role} service on http://{host}:{port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("[*] Shutting down.")
        server.server_close()


if __name__ == "__main__":
    main()
