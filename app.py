import datetime
import json
import logging
import sys

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

import storage
from ao3_scraper import (
    AuthenticationError,
    HistoryScraper,
    acquire_session,
    fixed_credentials,
    scrape_ao3_history,
)
from config import load_settings
from report import build_summary

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


def _current_year():
    return datetime.date.today().year


def summary_payload(tables, dataset):
    return {
        'items': dataset.rows,
        'statistics': build_summary(tables, dataset).to_dict(),
    }


def _sse(event, data):
    return f'event: {event}\ndata: {json.dumps(data)}\n\n'


@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'timestamp': datetime.datetime.now().isoformat()})


@app.route('/api/stats/<int:year>', methods=['GET'])
def stats_for_year(year):
    try:
        tables, dataset = storage.load(year, load_settings().output_dir)
    except storage.ArtifactMissing as error:
        return jsonify({'error': str(error)}), 404
    return jsonify(summary_payload(tables, dataset))


@app.route('/api/scrape-stream', methods=['GET'])
def scrape_stream():
    username = request.args.get('username')
    password = request.args.get('password')
    year = request.args.get('year') or _current_year()

    if not username or not password:
        def error_generator():
            yield _sse('error', {'error': 'Username and password required'})
        return Response(error_generator(), mimetype='text/event-stream')

    logger.info('Starting scrape for user: %s (Year: %s)', username, year)
    settings = load_settings()

    def generate():
        try:
            handle = acquire_session(fixed_credentials(username, password), settings)
            scraper = HistoryScraper(handle, year, settings)
            for page in scraper.iter_pages():
                yield _sse('progress', {'page': page.page, 'matched': page.matched, 'total': len(scraper.aggregator)})
            result = scraper.result()
            logger.info('Successfully scraped %s items', len(result.dataset))
            yield _sse('complete', summary_payload(result.tables, result.dataset))
        except Exception as error:
            logger.exception('Scraping error')
            yield _sse('error', {'error': str(error) or 'Failed to scrape history'})

    return Response(generate(), mimetype='text/event-stream')


@app.route('/api/scrape', methods=['POST'])
def scrape():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')
    year = data.get('year') or _current_year()

    if not username or not password:
        return jsonify({'error': 'Username and password required'}), 400

    logger.info('Starting scrape for user: %s (Year: %s)', username, year)

    try:
        result = scrape_ao3_history(fixed_credentials(username, password), year, load_settings())
    except AuthenticationError as error:
        return jsonify({'error': str(error)}), 401
    except Exception as error:
        logger.exception('Scraping error')
        return jsonify({
            'error': str(error) or 'Failed to scrape history. Please check your credentials.'
        }), 500

    logger.info('Successfully scraped %s items', len(result.dataset))
    return jsonify(summary_payload(result.tables, result.dataset))


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    port = load_settings().port
    print('Python version:', sys.version)
    print(f'Server running on http://localhost:{port}')
    print(f'Health check available at: http://localhost:{port}/api/health')
    app.run(host='0.0.0.0', port=port, debug=False)
