from flask_cors import CORS
from flask import Flask, jsonify, request
from PeopleCounter import PeopleCounter
import threading
import logging

app = Flask(__name__)
CORS(app)
counter = None
counter_thread = None
counter_lock = threading.Lock()

# Fixed config path
CONFIG_PATH = 'config.json'


def _is_running():
    return counter is not None and counter_thread is not None and counter_thread.is_alive()


@app.route('/start', methods=['POST'])
def start_counter():
    """Start the people counting service"""
    global counter, counter_thread

    data = request.get_json(silent=True) or {}
    video_source = data.get('video_source', 0)

    with counter_lock:
        if _is_running():
            return jsonify({'error': 'Counter is already running'}), 400

        try:
            counter = PeopleCounter(CONFIG_PATH, camera_id=data.get('camera_id'))

            # Start counter in a separate thread
            counter_thread = threading.Thread(target=_run_counter, args=(counter, video_source))
            counter_thread.daemon = True
            counter_thread.start()

            return jsonify({
                'message': 'Counter started successfully',
                'video_source': video_source
            }), 200
        except Exception as e:
            logging.error("Error starting counter: %s", e)
            return jsonify({'error': str(e)}), 500


def _run_counter(people_counter, video_source):
    try:
        people_counter.start(video_source)
    except Exception as e:
        logging.error("Counter stopped with error: %s", e)


@app.route('/stop', methods=['POST'])
def stop_counter():
    """Stop the people counting service"""
    global counter, counter_thread

    with counter_lock:
        if not _is_running():
            return jsonify({'error': 'Counter is not running'}), 400

        try:
            results = counter.get_counts()
            counter.stop()
            counter_thread.join(timeout=5)  # Wait up to 5 seconds for the thread to finish

            counter = None
            counter_thread = None

            return jsonify({
                'message': 'Counter stopped successfully',
                'results': results
            }), 200
        except Exception as e:
            logging.error("Error stopping counter: %s", e)
            return jsonify({'error': str(e)}), 500


@app.route('/reset', methods=['POST'])
def reset_counter():
    """Zero the counts and forget every tracked person"""
    with counter_lock:
        if not _is_running():
            return jsonify({'error': 'Counter is not running'}), 400

        counter.reset_counts()
        return jsonify({'message': 'Counter reset'}), 200


@app.route('/status', methods=['GET'])
def get_status():
    """Get current status and counts"""
    if not _is_running():
        return jsonify({
            'running': False,
            'entries': 0,
            'exits': 0,
            'total': 0,
            'tracked': 0
        }), 200

    counts = counter.get_counts()
    return jsonify({
        'running': True,
        'entries': counts['entries'],
        'exits': counts['exits'],
        'total': counts['total'],
        'tracked': counter.get_tracked_count()
    }), 200


@app.route('/health', methods=['GET'])
def health_check():
    """Basic health check endpoint"""
    return jsonify({'status': 'healthy'}), 200


def main():
    """Main entry point"""
    import argparse

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description='People Counter Web Service')
    parser.add_argument('--host', type=str, default='0.0.0.0', help='Host to run the service on')
    parser.add_argument('--port', type=int, default=5000, help='Port to run the service on')
    args = parser.parse_args()

    app.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
