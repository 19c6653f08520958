"""
Web application module for Pitchside.

This module contains the Flask server that exposes the match-day engine as
JSON API endpoints for the pitch-board interface.
"""
import logging
import os
from dataclasses import asdict
from typing import Optional

from flask import Flask, jsonify, request, send_from_directory

from ..config import PitchSettings, SettingsError, load_settings_from_env
from ..models import Category, FormationTemplates, Player, find_player
from ..services import MatchSession, ServiceFactory
from ..utils import APP_TITLE

logger = logging.getLogger(__name__)

DEFAULT_TEAM_ID = "default"


class WebAppState:
    """Holds the service factory and hands out one session per team."""

    def __init__(self, factory: Optional[ServiceFactory] = None, settings: Optional[PitchSettings] = None):
        self.factory = factory or ServiceFactory(
            data_dir=os.environ.get("PITCHSIDE_DATA_DIR"),
            webhook_url=os.environ.get("PITCHSIDE_WEBHOOK_URL"),
        )
        self.settings = settings

    def session(self, team_id: Optional[str] = None) -> MatchSession:
        settings = PitchSettings.from_dict(self.settings.to_dict()) if self.settings else None
        return self.factory.get_session(team_id or DEFAULT_TEAM_ID, settings)


def _player_summary(player: Player) -> dict:
    return {"id": player.id, "name": player.name, "number": player.number,
            "current_category": player.current_category.value if player.current_category else None}


def _parse_categories(values) -> list:
    categories = [Category.parse(v) for v in values or []]
    return [c for c in categories if c is not None]


def create_app(factory: Optional[ServiceFactory] = None, static_folder: str = ".",
               settings: Optional[PitchSettings] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        factory: Service factory; a default one reading PITCHSIDE_* variables is built when omitted
        static_folder: Directory to serve static files from
        settings: Pitch settings for new sessions; read from the environment when omitted

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__, static_folder=static_folder, static_url_path="")
    app_state = WebAppState(factory, settings or load_settings_from_env())

    def _session() -> MatchSession:
        data = request.get_json(silent=True) or {}
        return app_state.session(request.args.get("team_id") or data.get("team_id"))

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    def _state(session: MatchSession, **extra):
        payload = {"success": True, "state": session.to_dict()}
        payload.update(extra)
        return jsonify(payload)

    def _fail(message: str, status: int = 400):
        return jsonify({"success": False, "error": message}), status

    @app.errorhandler(SettingsError)
    def handle_settings_error(exc):
        return _fail(str(exc), 400)

    @app.route("/")
    def index():
        """Serve the pitch-board interface."""
        response = send_from_directory(static_folder, "index.html")
        response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        return response

    # ==================== State & roster ==================== #

    @app.route("/api/state", methods=["GET"])
    def get_state():
        return _state(_session())

    @app.route("/api/roster", methods=["POST"])
    def update_roster():
        """Replace the roster and seat it on the selected formation."""
        data = _body()
        try:
            players = [Player.from_dict(p) for p in data.get("players", [])]
        except (KeyError, TypeError, ValueError) as exc:
            return _fail(f"Invalid player record: {exc}")
        session = _session()
        session.load_roster(players, data.get("team_size"))
        return _state(session)

    @app.route("/api/settings", methods=["POST"])
    def update_settings():
        session = _session()
        merged = session.settings.to_dict()
        merged.update({k: v for k, v in _body().items() if k in merged})
        try:
            settings = PitchSettings.from_dict(merged)
        except (TypeError, ValueError) as exc:
            return _fail(str(exc))
        session.update_settings(settings)
        return _state(session)

    # ==================== Formations ==================== #

    @app.route("/api/formations", methods=["GET"])
    def get_formations():
        team_size = request.args.get("team_size", type=int) or _session().board.team_size
        templates = FormationTemplates.for_team_size(team_size)
        return jsonify({"success": True, "formations": [t.to_dict() for t in templates]})

    @app.route("/api/formation", methods=["POST"])
    def assign_formation():
        data = _body()
        session = _session()
        if "team_size" in data and not session.set_team_size(int(data["team_size"])):
            return _fail("Unsupported team size")
        index = data.get("index")
        if index is not None and FormationTemplates.get(session.board.team_size, int(index)) is None:
            return _fail("Formation not found", 404)
        session.assign_formation(int(index) if index is not None else None)
        return _state(session)

    @app.route("/api/formation/preview", methods=["GET"])
    def preview_formation():
        index = request.args.get("index", type=int)
        session = _session()
        if index is None or FormationTemplates.get(session.board.team_size, index) is None:
            return _fail("Formation not found", 404)
        changes = session.preview_formation_change(index)
        return jsonify({"success": True, "changes": [
            {"player_id": c.player_id, "from": c.from_category.value, "to": c.to_category.value}
            for c in changes
        ]})

    @app.route("/api/formation/change", methods=["POST"])
    def change_formation():
        session = _session()
        if not session.change_formation(int(_body().get("index", -1))):
            return _fail("Formation not found", 404)
        return _state(session)

    # ==================== Eligibility ==================== #

    @app.route("/api/players/<player_id>/bench-candidates", methods=["GET"])
    def bench_candidates(player_id: str):
        session = _session()
        return jsonify({"success": True, "players": [
            _player_summary(p) for p in session.valid_bench_candidates(player_id)
        ]})

    @app.route("/api/players/<player_id>/swap-targets", methods=["GET"])
    def swap_targets(player_id: str):
        session = _session()
        return jsonify({"success": True, "players": [
            _player_summary(p) for p in session.valid_swap_targets(player_id)
        ]})

    @app.route("/api/players/<player_id>/movable", methods=["GET"])
    def movable_players(player_id: str):
        session = _session()
        required = Category.parse(request.args.get("category"))
        movable = session.movable_pitch_players(player_id, required, request.args.get("replacing"))
        return jsonify({"success": True, "players": [_player_summary(p) for p in movable]})

    @app.route("/api/players/<player_id>/substitution-options", methods=["GET"])
    def substitution_options(player_id: str):
        session = _session()
        pitch_player = find_player(session.players, player_id)
        if pitch_player is None:
            return _fail("Player not found", 404)
        options = session.substitution_options(player_id)
        return jsonify({"success": True, "options": [
            {
                "bench_player": _player_summary(o.bench_player),
                "kind": o.kind,
                "swap_player": _player_summary(o.swap_player) if o.swap_player else None,
                "description": o.describe(pitch_player.current_category),
            }
            for o in options
        ]})

    # ==================== Substitutions & undo ==================== #

    @app.route("/api/substitution", methods=["POST"])
    def make_substitution():
        """Make a manual substitution, optionally via a position swap."""
        data = _body()
        out_id, in_id = data.get("out_id"), data.get("in_id")
        if not out_id or not in_id:
            return _fail("Both out_id and in_id required")
        session = _session()
        if find_player(session.players, out_id) is None or find_player(session.players, in_id) is None:
            return _fail("Player not found", 404)
        if not session.substitute(out_id, in_id, data.get("swap_partner_id")):
            return _fail("Substitution not allowed")
        return _state(session)

    @app.route("/api/swap", methods=["POST"])
    def swap_positions():
        data = _body()
        session = _session()
        if not session.swap_positions(data.get("first_id"), data.get("second_id")):
            return _fail("Swap not allowed")
        return _state(session)

    @app.route("/api/undo", methods=["POST"])
    def undo_action():
        session = _session()
        description = session.undo()
        if description is None:
            return jsonify({"success": False, "message": "Nothing to undo"}), 400
        return _state(session, message=f"Undid {description}")

    # ==================== Auto-subs ==================== #

    @app.route("/api/autosub/plan", methods=["POST"])
    def plan_auto_subs():
        session = _session()
        session.plan_auto_subs()
        return _state(session, forecast=[asdict(f) for f in session.forecast()])

    @app.route("/api/autosub/recalculate", methods=["POST"])
    def recalculate_plan():
        session = _session()
        session.recalculate_plan()
        return _state(session)

    @app.route("/api/autosub/forecast", methods=["GET"])
    def forecast():
        session = _session()
        return jsonify({"success": True, "forecast": [asdict(f) for f in session.forecast()]})

    @app.route("/api/autosub/confirm", methods=["POST"])
    def confirm_auto_sub():
        session = _session()
        applied = session.confirm_pending()
        return _state(session, applied=[e.to_dict() for e in applied])

    @app.route("/api/autosub/skip", methods=["POST"])
    def skip_auto_sub():
        session = _session()
        session.skip_pending()
        return _state(session)

    @app.route("/api/autosub/pause", methods=["POST"])
    def pause_auto_subs():
        session = _session()
        if not session.pause_auto_subs(bool(_body().get("paused", True))):
            return _fail("Auto-subs are not active")
        return _state(session)

    @app.route("/api/autosub/cancel", methods=["POST"])
    def cancel_auto_subs():
        session = _session()
        session.cancel_auto_subs()
        return _state(session)

    @app.route("/api/autosub/events", methods=["POST"])
    def add_plan_event():
        """Add a hand-picked substitution to the plan."""
        data = _body()
        out_id, in_id = data.get("out_id"), data.get("in_id")
        if not out_id or not in_id:
            return _fail("Both out_id and in_id required")
        try:
            time, half = int(data.get("time", 0)), int(data.get("half", 1))
        except (TypeError, ValueError):
            return _fail("time and half must be whole numbers")
        session = _session()
        event = session.add_plan_event(out_id, in_id, time, half)
        if event is None:
            return _fail("Invalid substitution event")
        return _state(session, event=event.to_dict())

    @app.route("/api/autosub/events/<int:index>", methods=["PUT"])
    def update_plan_event(index: int):
        data = _body()
        try:
            time = int(data["time"]) if data.get("time") is not None else None
            half = int(data["half"]) if data.get("half") is not None else None
        except (TypeError, ValueError):
            return _fail("time and half must be whole numbers")
        session = _session()
        if not session.update_plan_event(index, time, half, data.get("out_id"), data.get("in_id")):
            return _fail("Plan event cannot be changed")
        return _state(session)

    @app.route("/api/autosub/events/<int:index>", methods=["DELETE"])
    def delete_plan_event(index: int):
        session = _session()
        if not session.delete_plan_event(index):
            return _fail("Plan event not found", 404)
        return _state(session)

    @app.route("/api/autosub/events/<int:index>/move", methods=["POST"])
    def move_plan_event(index: int):
        try:
            to_index = int(_body().get("to"))
        except (TypeError, ValueError):
            return _fail("Target index required")
        session = _session()
        if not session.move_plan_event(index, to_index):
            return _fail("Plan event cannot be moved")
        return _state(session)

    # ==================== Timer ==================== #

    @app.route("/api/timer/toggle", methods=["POST"])
    def toggle_timer():
        session = _session()
        session.toggle()
        return _state(session)

    @app.route("/api/timer/tick", methods=["POST"])
    def tick_timer():
        session = _session()
        event = session.tick()
        return _state(session, clock_event=event.value)

    @app.route("/api/timer/reset", methods=["POST"])
    def reset_timer():
        session = _session()
        session.reset()
        return _state(session)

    @app.route("/api/timer/configure", methods=["POST"])
    def configure_timer():
        data = _body()
        try:
            minutes = int(data.get("minutes_per_half"))
        except (TypeError, ValueError):
            return _fail("minutes_per_half must be a whole number")
        session = _session()
        session.configure_minutes(minutes)
        return _state(session)

    # ==================== Match events ==================== #

    @app.route("/api/goals", methods=["POST"])
    def record_goal():
        data = _body()
        session = _session()
        goal = session.record_goal(data.get("scorer_id"), bool(data.get("is_opponent_goal", False)))
        return _state(session, goal=goal.to_dict() if goal else None)

    @app.route("/api/goals/<goal_id>", methods=["DELETE"])
    def remove_goal(goal_id: str):
        session = _session()
        if not session.remove_goal(goal_id):
            return _fail("Goal not found", 404)
        return _state(session)

    @app.route("/api/players/<player_id>/injury", methods=["POST"])
    def toggle_injury(player_id: str):
        session = _session()
        if find_player(session.players, player_id) is None:
            return _fail("Player not found", 404)
        session.toggle_injury(player_id)
        return _state(session)

    @app.route("/api/fill-ins", methods=["POST"])
    def add_fill_in():
        data = _body()
        name = (data.get("name") or "").strip()
        if not name:
            return _fail("Fill-in player needs a name")
        session = _session()
        player = session.add_fill_in(name, _parse_categories(data.get("categories")), data.get("number"))
        return _state(session, player=player.to_dict() if player else None)

    @app.route("/api/fill-ins/<player_id>", methods=["DELETE"])
    def remove_fill_in(player_id: str):
        session = _session()
        if not session.remove_fill_in(player_id):
            return _fail("Only benched fill-in players can be removed")
        return _state(session)

    @app.route("/api/ball", methods=["POST"])
    def move_ball():
        data = _body()
        try:
            x, y = float(data["x"]), float(data["y"])
        except (KeyError, TypeError, ValueError):
            return _fail("x and y are required")
        session = _session()
        session.move_ball(x, y)
        return _state(session)

    @app.route("/api/mock", methods=["POST"])
    def mock_mode():
        data = _body()
        session = _session()
        if data.get("enabled", True):
            session.enable_mock_mode(data.get("count"))
        else:
            session.disable_mock_mode()
        return _state(session)

    return app


def run_web_app(host: str = "127.0.0.1", port: int = 7122, static_folder: str = ".") -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        static_folder: Directory containing static files (HTML, CSS, JS)
    """
    app = create_app(static_folder=static_folder)
    logger.info("Serving %s on http://%s:%d", APP_TITLE, host, port)
    app.run(host=host, port=port, debug=False)
