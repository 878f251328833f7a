from flask import Flask, jsonify, request
from datetime import datetime
import logging
import math
import os

from config.settings import compass_config
from destination.store import DestinationStore, JsonKeyValueStore
from navigation.algorithms.geo_utils import GeoUtils
from navigation.compass import CompassNavigator
from navigation.core.data_types import Destination, DestinationOrigin
from navigation.display import format_distance, gps_status, heading_status
from sensors.core.interfaces import PositionError
from telemetry.achievements import AchievementTracker

logger = logging.getLogger(__name__)


def validate_coordinates(lat, lng):
    """
    Validate GPS coordinates

    Args:
        lat: Latitude value
        lng: Longitude value

    Returns:
        tuple: (is_valid: bool, error_message: str or None)
    """
    # Type check
    if isinstance(lat, bool) or isinstance(lng, bool) \
            or not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False, "Coordinates must be numbers"

    # NaN/Inf check
    if not math.isfinite(lat) or not math.isfinite(lng):
        return False, "Invalid coordinate values (NaN or Infinity)"

    # Range check
    if not (-90 <= lat <= 90):
        return False, "Latitude must be between -90 and 90"

    if not (-180 <= lng <= 180):
        return False, "Longitude must be between -180 and 180"

    return True, None


class CompassAppError(Exception):
    """Application-specific error carrying an HTTP status"""

    def __init__(self, message, status_code=503):
        super().__init__(message)
        self.status_code = status_code


def _number(data, key, default=None):
    """Read an optional numeric field from a JSON body"""
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise CompassAppError(f"{key} must be a number", status_code=400)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise CompassAppError(f"{key} must be a number", status_code=400)


def create_app(navigator=None, tracker=None, store=None):
    """
    Flask application factory

    Args:
        navigator: CompassNavigator to serve; built over the JSON store if None
        tracker: AchievementTracker; built over the JSON store if None
        store: Key-value store shared by destination and achievements
    """
    app = Flask(__name__)

    app.config.update(
        SECRET_KEY=os.getenv('FLASK_SECRET_KEY', os.urandom(24)),
        DEBUG=os.getenv('FLASK_DEBUG', 'False').lower() == 'true',
    )

    if store is None and (navigator is None or tracker is None):
        store = JsonKeyValueStore(compass_config["storage_path"])
        logger.info(f"Compass state stored in {store.filepath}")

    if navigator is None:
        navigator = CompassNavigator(repository=DestinationStore(store))
        navigator.load_destination()
        # HTTP clients may push either orientation channel
        navigator.start_heading_updates()

    if tracker is None:
        tracker = AchievementTracker(store=store)

    navigator.add_arrival_observer(tracker.on_arrival)

    app.extensions['compass_navigator'] = navigator
    app.extensions['achievement_tracker'] = tracker

    _register_routes(app, navigator, tracker)
    _register_error_handlers(app)

    return app


def _register_error_handlers(app):
    """Register global error handlers"""

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(CompassAppError)
    def compass_error(error):
        if error.status_code >= 500:
            logger.error(f"Compass application error: {error}")
        return jsonify({"error": str(error), "success": False}), error.status_code


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise CompassAppError("No data provided", status_code=400)
    return data


def _register_routes(app, navigator, tracker):
    """Register Flask routes"""

    @app.route('/api/health')
    def api_health():
        """Health check endpoint for monitoring"""
        heading = navigator.heading
        return jsonify({
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "components": {
                "flask_app": "running",
                "gps": "fix" if navigator.position else ("error" if navigator.gps_error else "waiting"),
                "compass": heading.tier.value,
                "destination": "set" if navigator.destination else "none"
            }
        })

    @app.route('/api/status')
    def api_status():
        """Run one driving-loop cycle and report the result"""
        state = navigator.tick()
        status = state.to_dict()

        gps_text, gps_level = gps_status(state.position, state.gps_error)
        compass_text, compass_level = heading_status(state.heading.tier)
        status["display"] = {
            "distance": format_distance(state.distance_to_target),
            "cast_distance": format_distance(state.cast_distance) if state.cast_distance else None,
            "gps": {"text": gps_text, "level": gps_level},
            "compass": {"text": compass_text, "level": compass_level},
        }
        return jsonify(status)

    @app.route('/api/position', methods=['POST'])
    def api_position():
        """Push a position fix, or a position error with {"error": "..."}"""
        data = _json_body()

        error_value = data.get('error')
        if error_value is not None:
            try:
                error = PositionError(error_value)
            except ValueError:
                raise CompassAppError(f"Unknown position error '{error_value}'", status_code=400)
            navigator.on_position_error(error)
            return jsonify({"success": True, "gps_error": error.message})

        lat = _number(data, 'lat')
        lng = _number(data, 'lng')
        if lat is None or lng is None:
            raise CompassAppError("lat and lng are required", status_code=400)

        valid, message = validate_coordinates(lat, lng)
        if not valid:
            raise CompassAppError(message, status_code=400)

        accuracy = _number(data, 'accuracy', 0.0) or 0.0
        if not GeoUtils.is_valid_accuracy(accuracy):
            raise CompassAppError("accuracy must be a finite, non-negative number", status_code=400)

        navigator.update_position(lat, lng, accuracy)
        return jsonify({"success": True, "position": navigator.position.to_dict()})

    @app.route('/api/orientation/absolute', methods=['POST'])
    def api_orientation_absolute():
        data = _json_body()
        applied = navigator.on_absolute_orientation(data.get('alpha'))
        return jsonify({"success": True, "applied": applied, "heading": navigator.heading.to_dict()})

    @app.route('/api/orientation/standard', methods=['POST'])
    def api_orientation_standard():
        data = _json_body()
        applied = navigator.on_standard_orientation(
            alpha=data.get('alpha'),
            absolute=data.get('absolute'),
            compass_heading=data.get('compass_heading')
        )
        return jsonify({"success": True, "applied": applied, "heading": navigator.heading.to_dict()})

    @app.route('/api/parse', methods=['POST'])
    def api_parse():
        """Parse destination text without applying it"""
        data = _json_body()
        parsed = navigator.parse(data.get('text'))
        if parsed is None:
            return jsonify({"success": False, "error": "Unrecognized coordinate format"}), 400
        return jsonify({"success": True, "coordinate": parsed.to_dict()})

    @app.route('/api/destination', methods=['GET'])
    def api_get_destination():
        destination = navigator.destination
        return jsonify({"destination": destination.to_dict() if destination else None})

    @app.route('/api/destination', methods=['POST'])
    def api_set_destination():
        """Set the destination from {"text": ...} or explicit {"lat", "lng"}"""
        data = _json_body()

        if 'text' in data:
            destination = navigator.set_destination_from_text(data.get('text'))
            if destination is None:
                return jsonify({"success": False, "error": "Unrecognized coordinate format"}), 400
            return jsonify({"success": True, "destination": destination.to_dict()})

        lat = _number(data, 'lat')
        lng = _number(data, 'lng')
        if lat is None or lng is None:
            raise CompassAppError("text or lat and lng are required", status_code=400)

        valid, message = validate_coordinates(lat, lng)
        if not valid:
            raise CompassAppError(message, status_code=400)

        initial_distance = 0.0
        position = navigator.position
        if position is not None:
            initial_distance = GeoUtils.distance(position.lat, position.lng, lat, lng)

        destination = Destination(lat=lat, lng=lng, origin=DestinationOrigin.TYPED,
                                  initial_distance=initial_distance)
        navigator.set_destination(destination)
        return jsonify({"success": True, "destination": destination.to_dict()})

    @app.route('/api/cast/gesture', methods=['POST'])
    def api_cast_gesture():
        """Report one completed vertical swipe (delta_y > 0 is upward)"""
        data = _json_body()
        delta_y = _number(data, 'delta_y')
        duration = _number(data, 'duration_ms')
        timestamp = _number(data, 'timestamp_ms')
        if delta_y is None or duration is None or timestamp is None:
            raise CompassAppError("delta_y, duration_ms and timestamp_ms are required", status_code=400)

        result = navigator.cast_gesture(delta_y, duration, timestamp)
        session = navigator.cast_session
        return jsonify({
            "phase": session.phase.value,
            "gesture_count": session.gesture_count,
            "activation": result.to_dict() if result else None,
            "selected_distance": session.selected_distance
        })

    @app.route('/api/cast/select', methods=['POST'])
    def api_cast_select():
        """Pick a distance by {"index": n} or move by {"step": n}"""
        data = _json_body()
        index = data.get('index')
        step = data.get('step')
        if (index is None) == (step is None):
            raise CompassAppError("Exactly one of index or step is required", status_code=400)
        if isinstance(index, bool) or isinstance(step, bool) \
                or not isinstance(index if index is not None else step, int):
            raise CompassAppError("index and step must be integers", status_code=400)

        selected = navigator.cast_select(index=index, step=step)
        if selected is None:
            raise CompassAppError("Cast mode is not active", status_code=409)
        return jsonify({
            "success": True,
            "selected_index": selected,
            "selected_distance": navigator.cast_session.selected_distance
        })

    @app.route('/api/cast/drag', methods=['POST'])
    def api_cast_drag():
        """Drive the distance picker: {"action": "start"|"move", "y", "timestamp_ms"} or {"action": "end"}"""
        data = _json_body()
        action = data.get('action')
        if not navigator.cast_session.active:
            raise CompassAppError("Cast mode is not active", status_code=409)

        momentum = False
        if action == 'end':
            momentum = navigator.cast_drag_end()
            while momentum and navigator.cast_momentum_step():
                pass
        elif action in ('start', 'move'):
            y = _number(data, 'y')
            timestamp = _number(data, 'timestamp_ms')
            if y is None or timestamp is None:
                raise CompassAppError("y and timestamp_ms are required", status_code=400)
            if action == 'start':
                navigator.cast_drag_start(y, timestamp)
            else:
                navigator.cast_drag_move(y, timestamp)
        else:
            raise CompassAppError("action must be start, move or end", status_code=400)

        return jsonify({
            "success": True,
            "momentum": momentum,
            "selected_distance": navigator.cast_session.selected_distance
        })

    @app.route('/api/cast/commit', methods=['POST'])
    def api_cast_commit():
        result = navigator.cast_commit()
        status_code = 200 if result.success else 409
        return jsonify(result.to_dict()), status_code

    @app.route('/api/cast/cancel', methods=['POST'])
    def api_cast_cancel():
        cancelled = navigator.cast_cancel()
        return jsonify({"success": cancelled, "phase": navigator.cast_session.phase.value})

    @app.route('/api/cast/steps')
    def api_cast_steps():
        steps = list(navigator.step_table)
        return jsonify({
            "steps": steps,
            "labels": [format_distance(s) for s in steps],
            "default_index": navigator.step_table.nearest_index(navigator.cast_session.default_distance)
        })

    @app.route('/api/achievements')
    def api_achievements():
        return jsonify(tracker.summary())

    @app.route('/api/achievements/export')
    def api_achievements_export():
        return app.response_class(tracker.export_json(), mimetype='application/json')

    @app.route('/api/achievements/import', methods=['POST'])
    def api_achievements_import():
        payload = request.get_data(as_text=True)
        if not tracker.import_json(payload):
            raise CompassAppError("Invalid achievement export", status_code=400)
        return jsonify({"success": True, "unlocked_count": tracker.unlocked_count()})
