"""
API Routes
==========
Flask blueprints for all API endpoints.
"""
import os
import time

import psutil
from flask import Blueprint, request, jsonify

from proofreader import __version__
from proofreader.config.constants import (
    TARGET_LANGUAGES,
    RTL_LANGUAGES,
    MISSING_API_KEY_MESSAGE,
    AIOperation
)
from proofreader.models.schemas import SegmentUpdate
from proofreader.models.segment import Segment
from proofreader.services.reviewer import ReviewService, SubmitResult
from proofreader.api.middleware import rate_limit
from proofreader.utils.logging import get_logger, log_buffer
from proofreader.utils.validators import validate_language, validate_api_key


def _segment_not_found(segment_id: str):
    return jsonify({'error': f'Segment not found: {segment_id}'}), 404


def create_segments_blueprint(service: ReviewService) -> Blueprint:
    """Create segment CRUD routes blueprint."""
    bp = Blueprint('segments', __name__, url_prefix='/api')
    logger = get_logger().api_logger
    store = service.store

    @bp.route('/segments', methods=['GET'])
    def list_segments():
        """List all segments with review progress."""
        return jsonify({
            'segments': [s.to_dict() for s in store.all()],
            'stats': store.stats().to_dict()
        })

    @bp.route('/segments/stats', methods=['GET'])
    def get_stats():
        """Get review statistics."""
        return jsonify(store.stats().to_dict())

    @bp.route('/segments', methods=['POST'])
    def add_segment():
        """Append a blank segment, optionally with initial text."""
        payload = request.get_json(silent=True) or {}
        changes = {}
        if payload:
            update = SegmentUpdate(payload)
            errors = update.validate()
            if errors:
                return jsonify({'error': '; '.join(errors)}), 400
            changes = update.to_changes()

        segment = store.append(Segment(**changes))

        logger.info(f"Segment {segment.id} created")
        return jsonify(segment.to_dict()), 201

    @bp.route('/segments/<segment_id>', methods=['GET'])
    def get_segment(segment_id: str):
        segment = store.get(segment_id)
        if segment is None:
            return _segment_not_found(segment_id)
        return jsonify(segment.to_dict())

    @bp.route('/segments/<segment_id>', methods=['PATCH'])
    def update_segment(segment_id: str):
        """Edit source/target text, status or category."""
        update = SegmentUpdate(request.get_json(silent=True))
        errors = update.validate()
        if errors:
            return jsonify({'error': '; '.join(errors)}), 400

        segment = store.update(segment_id, **update.to_changes())
        if segment is None:
            return _segment_not_found(segment_id)
        return jsonify(segment.to_dict())

    @bp.route('/segments/<segment_id>', methods=['DELETE'])
    def delete_segment(segment_id: str):
        if not store.remove(segment_id):
            return _segment_not_found(segment_id)
        return jsonify({'message': 'Segment deleted'})

    @bp.route('/segments/clear', methods=['POST'])
    def clear_segments():
        """Remove every segment."""
        store.clear()
        return jsonify({'message': 'All segments cleared'})

    return bp


def create_actions_blueprint(service: ReviewService) -> Blueprint:
    """Create AI action routes blueprint."""
    bp = Blueprint('actions', __name__, url_prefix='/api')
    logger = get_logger().api_logger

    def _trigger(operation: AIOperation, segment_id: str):
        if not service.preferences.has_api_key:
            return jsonify({
                'error': MISSING_API_KEY_MESSAGE,
                'settings_required': True
            }), 400

        outcome = service.request(operation, segment_id)
        if outcome is SubmitResult.NOT_FOUND:
            return _segment_not_found(segment_id)

        segment = service.store.get(segment_id)
        body = {
            'queued': outcome is SubmitResult.QUEUED,
            'result': outcome.value,
            'segment': segment.to_dict() if segment else None
        }
        if outcome is SubmitResult.DUPLICATE:
            logger.info(f"{operation.value} already in progress for {segment_id}")
            return jsonify(body), 200
        return jsonify(body), 202

    @bp.route('/segments/<segment_id>/translate', methods=['POST'])
    @rate_limit
    def translate_segment(segment_id: str):
        """Machine-translate the source text into the target language."""
        return _trigger(AIOperation.TRANSLATE, segment_id)

    @bp.route('/segments/<segment_id>/analyze', methods=['POST'])
    @rate_limit
    def analyze_segment(segment_id: str):
        """Audit the translation for omissions, terminology and meaning errors."""
        return _trigger(AIOperation.AUDIT, segment_id)

    @bp.route('/segments/<segment_id>/word-analysis', methods=['POST'])
    @rate_limit
    def word_analysis(segment_id: str):
        """Produce a word-by-word breakdown."""
        return _trigger(AIOperation.WORD_ANALYSIS, segment_id)

    @bp.route('/queue', methods=['GET'])
    def queue_status():
        return jsonify(service.serializer.stats())

    return bp


def create_settings_blueprint(service: ReviewService) -> Blueprint:
    """Create settings routes blueprint (target language and API key)."""
    bp = Blueprint('settings', __name__, url_prefix='/api')
    preferences = service.preferences

    @bp.route('/settings/language', methods=['GET'])
    def get_language():
        return jsonify({'language': preferences.target_language})

    @bp.route('/settings/language', methods=['PUT'])
    def set_language():
        payload = request.get_json(silent=True) or {}
        language = payload.get('language')
        valid, error = validate_language(language)
        if not valid:
            return jsonify({'error': error}), 400
        preferences.target_language = language
        return jsonify({'language': language})

    @bp.route('/settings/api-key', methods=['GET'])
    def get_api_key_status():
        """Report whether a key is stored; the key itself is never returned."""
        return jsonify({'has_api_key': preferences.has_api_key})

    @bp.route('/settings/api-key', methods=['PUT'])
    def set_api_key():
        payload = request.get_json(silent=True) or {}
        api_key = payload.get('api_key')
        valid, error = validate_api_key(api_key)
        if not valid:
            return jsonify({'error': error}), 400
        preferences.api_key = api_key
        return jsonify({'has_api_key': True})

    @bp.route('/settings/api-key', methods=['DELETE'])
    def delete_api_key():
        preferences.clear_api_key()
        return jsonify({'has_api_key': False})

    @bp.route('/languages', methods=['GET'])
    def list_languages():
        """List supported target languages."""
        return jsonify({
            'languages': TARGET_LANGUAGES,
            'rtl': RTL_LANGUAGES,
            'selected': preferences.target_language
        })

    return bp


def create_health_blueprint(service: ReviewService) -> Blueprint:
    """Create health check routes blueprint."""
    bp = Blueprint('health', __name__, url_prefix='/api')
    database = service.store.repository.db

    @bp.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        database_ok = database.is_healthy()
        return jsonify({
            'status': 'healthy' if database_ok else 'degraded',
            'database': 'connected' if database_ok else 'disconnected',
            'api_key_configured': service.preferences.has_api_key,
            'model': service.client.model,
            'version': __version__
        }), 200 if database_ok else 503

    @bp.route('/metrics', methods=['GET'])
    def get_metrics():
        """Get application metrics."""
        process = psutil.Process(os.getpid())
        system_metrics = {
            'cpu_percent': psutil.cpu_percent(interval=None),
            'memory_percent': psutil.virtual_memory().percent,
            'process_memory_mb': round(process.memory_info().rss / (1024 * 1024), 1),
            'uptime': time.time() - process.create_time()
        }

        return jsonify({
            'review_metrics': service.store.stats().to_dict(),
            'queue_metrics': service.serializer.stats(),
            'system_metrics': system_metrics,
            'model': service.client.model
        })

    return bp


def create_logs_blueprint() -> Blueprint:
    """Create logs routes blueprint for the frontend console panel."""
    bp = Blueprint('logs', __name__)

    @bp.route('/logs', methods=['GET'])
    def get_logs():
        """Get logs from in-memory buffer."""
        since_id = request.args.get('since', 0, type=int)
        if since_id > 0:
            logs = log_buffer.get_since(since_id)
        else:
            logs = log_buffer.get_all()
        return jsonify({'logs': logs})

    @bp.route('/logs/clear', methods=['POST'])
    def clear_logs():
        """Clear the log buffer."""
        log_buffer.clear()
        return jsonify({'message': 'Logs cleared'})

    return bp
