"""Local stand-in for the benchmarked endpoint.

Serves a fixed JSON body and counts every hit so call counts can be checked.
"""
import json
import os
import threading
import time

from flask import Flask, Response, jsonify, request

BODY_SIZE = int(os.getenv("TARGET_BODY_SIZE", "200"))

app = Flask(__name__)

lock = threading.Lock()
counter = 0
inflight = 0
peak_inflight = 0


def make_body(size: int) -> str:
    # '{"data": ""}' is 12 bytes
    return json.dumps({"data": "x" * max(size - 12, 0)})


BODY = make_body(BODY_SIZE)


def _hit():
    global counter
    with lock:
        counter += 1


@app.get("/users")
def users():
    _hit()
    return Response(BODY, mimetype="application/json")


@app.get("/slow")
def slow():
    global inflight, peak_inflight
    _hit()
    with lock:
        inflight += 1
        peak_inflight = max(peak_inflight, inflight)
    try:
        time.sleep(int(request.args.get("ms", "100")) / 1000)
    finally:
        with lock:
            inflight -= 1
    return Response(BODY, mimetype="application/json")


@app.get("/fail")
def fail():
    _hit()
    return jsonify(error="boom"), 500


@app.get("/count")
def count():
    with lock:
        return jsonify(value=counter)


@app.get("/inflight")
def inflight_requests():
    with lock:
        return jsonify(current=inflight, peak=peak_inflight)


@app.post("/reset")
def reset():
    global counter, peak_inflight
    with lock:
        counter = 0
        peak_inflight = 0
    return jsonify(ok=True)


def serve(host: str = "127.0.0.1", port: int = 8080, threads: int = 100):
    from waitress import serve as waitress_serve
    waitress_serve(app, host=host, port=port, threads=threads)


if __name__ == "__main__":
    serve()
