"""
HTTP front for the extraction pipeline.

GET /scrape?url=... answers with the article record, or with an error
message and the status code matching the failure. GET /health is a
liveness probe.
"""

import logging
import os
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from cleanread.exceptions import (
    Blocked,
    CleanReadError,
    ExtractionFailed,
    InvalidURL,
    NotFound,
    Unreachable,
    UnparsableDocument,
    UpstreamHTTPError,
    UpstreamUnavailable,
)
from cleanread.pipeline import extract_article

app = Flask(__name__)
log = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred while processing the article. Please try again."

# Checked in order: subclasses before their bases.
ERROR_RESPONSES = (
    (InvalidURL, 400, "Invalid URL format. Please provide a valid URL."),
    (Blocked, 403, "Access denied. This website blocks scraping requests."),
    (NotFound, 404, "Page not found. The URL might be incorrect or the page has been removed."),
    (Unreachable, 503, "Unable to connect to the website. The site might be down or blocking requests."),
    (UpstreamUnavailable, 503, "The website is currently experiencing issues. Please try again later."),
    (
        ExtractionFailed,
        422,
        "Could not extract readable content from this URL. "
        "The page might not contain an article or might be blocked from scraping.",
    ),
    (UnparsableDocument, 422, "The URL does not point to an HTML page."),
)


def error_response(error: CleanReadError):
    """Translate a pipeline failure into a JSON error and a status code."""
    for error_type, status, message in ERROR_RESPONSES:
        if isinstance(error, error_type):
            return jsonify({"error": message}), status
    if isinstance(error, UpstreamHTTPError) and error.status:
        return jsonify({"error": f"HTTP error {error.status}"}), error.status
    return jsonify({"error": UNEXPECTED_ERROR}), 500


@app.route("/scrape", methods=["GET"])
def scrape():
    url = request.args.get("url")
    if not url:
        return jsonify({"error": "URL parameter is required. Please provide a valid URL."}), 400

    log.info(f"Scraping article from: {url}")
    try:
        article = extract_article(url)
    except CleanReadError as e:
        log.warning(f"Scraping {url} failed: {type(e).__name__}")
        return error_response(e)

    return jsonify(article.to_dict())


@app.errorhandler(Exception)
def unexpected_error(error):
    if isinstance(error, HTTPException):
        return error
    log.exception("Unexpected error while scraping")
    return jsonify({"error": UNEXPECTED_ERROR}), 500


@app.route("/health", methods=["GET"])
def health():
    return jsonify(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "CleanRead Article Scraper",
        }
    )


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper()),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
