"""
Workflow API routes.

JSON endpoints over one store and navigator held by the app
(app.extensions["devflow"]). Both are created on first use unless the app
factory was handed them.
"""

from flask import current_app, jsonify, request, Response

from config import GUARDED_FROM, GUARDED_TO
from models import CycleSummary, LinkOverrides
from repositories import NotFound, StoreUnavailable, MigrationFailure, create_store
from workflow import (
    FlowNavigator,
    LineageResolver,
    WorkflowReadModel,
    build_prompt_context,
    fill_template,
    format_cycle_markdown,
)
from . import workflow_bp


# === Wiring ===

def get_store():
    state = current_app.extensions["devflow"]
    if state.get("store") is None:
        state["store"] = create_store()
    return state["store"]


def get_navigator() -> FlowNavigator:
    state = current_app.extensions["devflow"]
    if state.get("navigator") is None:
        state["navigator"] = FlowNavigator(get_store())
    return state["navigator"]


def _int_arg(name: str):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer")


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


# === Errors ===

@workflow_bp.errorhandler(NotFound)
def handle_not_found(e):
    return jsonify({"error": str(e)}), 404


@workflow_bp.errorhandler(StoreUnavailable)
def handle_unavailable(e):
    return jsonify({"error": str(e)}), 503


@workflow_bp.errorhandler(MigrationFailure)
def handle_migration_failure(e):
    return jsonify({"error": str(e)}), 500


@workflow_bp.errorhandler(ValueError)
def handle_bad_request(e):
    return jsonify({"error": str(e)}), 400


# === Navigation ===

def _navigation_state(nav: FlowNavigator) -> dict:
    state = nav.state()
    question = nav.current_question
    state["question"] = question.model_dump(mode="json", exclude_none=True) if question else None
    state["display_data"] = WorkflowReadModel(nav.store).display_data(question) if question else None
    return state


@workflow_bp.route("/api/workflow/state")
def workflow_state():
    return jsonify(_navigation_state(get_navigator()))


@workflow_bp.route("/api/workflow/enter", methods=["POST"])
def workflow_enter():
    data = _json_body()
    situation = data.get("situation")
    if not situation:
        return jsonify({"error": "situation required"}), 400

    nav = get_navigator()
    nav.enter(situation, data.get("question_id"))
    return jsonify(_navigation_state(nav))


@workflow_bp.route("/api/workflow/advance", methods=["POST"])
def workflow_advance():
    data = _json_body()
    if "question_id" not in data or "answer" not in data:
        return jsonify({"error": "question_id and answer required"}), 400

    nav = get_navigator()
    outcome = nav.advance(data["question_id"], data["answer"])
    return jsonify({
        "outcome": outcome.model_dump() if outcome else None,
        "complete": outcome is None,
        "state": _navigation_state(nav),
    })


@workflow_bp.route("/api/workflow/back", methods=["POST"])
def workflow_back():
    nav = get_navigator()
    question_id = nav.go_back()
    return jsonify({"question_id": question_id, "state": _navigation_state(nav)})


@workflow_bp.route("/api/flows")
def list_flows():
    return jsonify(get_navigator().catalog.to_json())


# === Answers ===

@workflow_bp.route("/api/answers")
def list_answers():
    store = get_store()
    situation = request.args.get("situation")
    question_id = request.args.get("question_id")

    if situation:
        answers = store.answers.by_situation(
            situation,
            _int_arg("cycle_id"),
            ascending=request.args.get("ascending") == "true",
        )
    elif question_id:
        answers = store.answers.by_question(question_id)
    else:
        return jsonify({"error": "situation or question_id required"}), 400

    return jsonify([a.model_dump() for a in answers])


@workflow_bp.route("/api/answers", methods=["POST"])
def save_answer():
    data = _json_body()
    for field in ("question_id", "situation", "answer"):
        if field not in data:
            return jsonify({"error": f"{field} required"}), 400

    links = {k: data[k] for k in ("intent_id", "problem_id", "parent_id", "cycle_id") if k in data}
    answer_id = get_store().save_answer(
        data["question_id"],
        data["situation"],
        data["answer"],
        answered_at=data.get("answered_at"),
        overrides=LinkOverrides(**links) if links else None,
    )
    return jsonify({"id": answer_id})


@workflow_bp.route("/api/answers/<int:answer_id>")
def get_answer(answer_id):
    answer = get_store().answers.get(answer_id)
    if not answer:
        return jsonify({"error": "Not found"}), 404
    return jsonify(answer.model_dump())


# === Cycles ===

@workflow_bp.route("/api/cycles")
def list_cycles():
    return jsonify([c.model_dump(mode="json") for c in get_store().cycles.list()])


@workflow_bp.route("/api/cycles", methods=["POST"])
def create_cycle():
    return jsonify(get_store().cycles.create().model_dump(mode="json"))


@workflow_bp.route("/api/cycles/current")
def current_cycle():
    cycle = get_store().cycles.active()
    return jsonify({"cycle": cycle.model_dump(mode="json") if cycle else None})


@workflow_bp.route("/api/cycles/previous")
def previous_cycle():
    summary = get_store().cycles.previous_completed()
    return jsonify({"previous": summary.model_dump(mode="json") if summary else None})


@workflow_bp.route("/api/cycles/history")
def previous_cycles_answers():
    summaries = get_store().cycles.previous_cycles_answers(_int_arg("exclude"))
    return jsonify([s.model_dump(mode="json") for s in summaries])


@workflow_bp.route("/api/cycles/unconscious")
def unconscious_periods():
    return jsonify([p.model_dump() for p in get_store().cycles.unconscious_periods()])


@workflow_bp.route("/api/cycles/<int:cycle_id>/complete", methods=["POST"])
def complete_cycle(cycle_id):
    return jsonify(get_store().cycles.complete(cycle_id).model_dump(mode="json"))


@workflow_bp.route("/api/cycles/<int:cycle_id>/activate", methods=["POST"])
def activate_cycle(cycle_id):
    return jsonify(get_store().cycles.activate(cycle_id).model_dump(mode="json"))


@workflow_bp.route("/api/cycles/<int:cycle_id>/answers")
def cycle_answers(cycle_id):
    return jsonify([a.model_dump() for a in get_store().answers.by_cycle(cycle_id)])


@workflow_bp.route("/api/cycles/<int:cycle_id>/markdown")
def cycle_markdown(cycle_id):
    store = get_store()
    cycle = store.cycles.get(cycle_id)
    if cycle is None:
        raise NotFound(f"Cycle {cycle_id} not found")

    summary = CycleSummary(cycle=cycle, answers=store.answers.by_cycle(cycle_id))
    return Response(format_cycle_markdown(summary), mimetype="text/markdown")


# === Picks ===

@workflow_bp.route("/api/cycles/<int:cycle_id>/picks")
def list_picks(cycle_id):
    return jsonify([p.model_dump() for p in get_store().picks.for_cycle(cycle_id)])


@workflow_bp.route("/api/picks", methods=["POST"])
def add_pick():
    data = _json_body()
    store = get_store()

    answer = store.answers.get(data.get("answer_id"))
    if answer is None:
        raise NotFound(f"Answer {data.get('answer_id')} not found")

    target = data.get("target_cycle_id")
    if target is None:
        active = store.cycles.active()
        if active is None:
            raise ValueError("No active cycle to add context to")
        target = active.id

    return jsonify({"id": store.picks.add(target, answer)})


@workflow_bp.route("/api/picks/<int:pick_id>", methods=["DELETE"])
def remove_pick(pick_id):
    if not get_store().picks.remove(pick_id):
        return jsonify({"error": "Not found"}), 404
    return jsonify({"status": "deleted"})


# === Transition guard ===

@workflow_bp.route("/api/counters/guard")
def guard_counter():
    record = get_store().counters.get_record(GUARDED_FROM, GUARDED_TO)
    return jsonify({
        "transition": f"{GUARDED_FROM}->{GUARDED_TO}",
        "count": record.count if record else 0,
        "last_reset_at": record.last_reset_at if record else None,
    })


@workflow_bp.route("/api/counters/guard/reset", methods=["POST"])
def reset_guard_counter():
    get_store().counters.reset(GUARDED_FROM, GUARDED_TO)
    return jsonify({"status": "reset"})


# === Prompt context ===

@workflow_bp.route("/api/context")
def prompt_context():
    situation = request.args.get("situation")
    if not situation:
        return jsonify({"error": "situation required"}), 400

    context = build_prompt_context(
        get_store(),
        situation,
        problem_id=_int_arg("problem_id"),
        cycle_id=_int_arg("cycle_id"),
    )
    return jsonify(context)


@workflow_bp.route("/api/prompt", methods=["POST"])
def generate_prompt():
    """Fill a template from the prompt context of a situation."""
    data = _json_body()
    if not data.get("template") or not data.get("situation"):
        return jsonify({"error": "template and situation required"}), 400

    context = build_prompt_context(
        get_store(),
        data["situation"],
        problem_id=data.get("problem_id"),
        cycle_id=data.get("cycle_id"),
    )
    context.update(data.get("inputs") or {})
    return jsonify({"prompt": fill_template(data["template"], context)})


@workflow_bp.route("/api/lineage")
def lineage_summary():
    return jsonify(LineageResolver(get_store()).summary())


@workflow_bp.route("/api/state")
def read_model_state():
    model = WorkflowReadModel(get_store())
    return jsonify({
        "current": model.current_state(),
        "history": [e.model_dump() for e in model.state_history()],
    })


# === Snapshots ===

@workflow_bp.route("/api/snapshots")
def list_snapshots():
    return jsonify([s.model_dump() for s in get_store().snapshots.list()])


@workflow_bp.route("/api/snapshots", methods=["POST"])
def save_snapshot():
    data = _json_body()
    situation = data.get("situation") or get_navigator().situation
    if not situation:
        return jsonify({"error": "situation required"}), 400
    snapshot_id = get_store().snapshots.save(situation, data.get("description"))
    return jsonify({"id": snapshot_id})


@workflow_bp.route("/api/snapshots/<int:snapshot_id>")
def snapshot_details(snapshot_id):
    details = get_store().snapshots.details(snapshot_id)
    if details is None:
        return jsonify({"error": "Not found"}), 404
    return jsonify(details.model_dump())


@workflow_bp.route("/api/snapshots/<int:snapshot_id>/restore", methods=["POST"])
def restore_snapshot(snapshot_id):
    situation = get_store().snapshots.restore(snapshot_id)
    nav = get_navigator()
    if nav.catalog.flow(situation):
        nav.enter(situation)
    return jsonify({"situation": situation})


@workflow_bp.route("/api/snapshots/<int:snapshot_id>", methods=["DELETE"])
def delete_snapshot(snapshot_id):
    if not get_store().snapshots.delete(snapshot_id):
        return jsonify({"error": "Not found"}), 404
    return jsonify({"status": "deleted"})


# === Whole store ===

@workflow_bp.route("/api/store/info")
def store_info():
    return jsonify(get_store().info())


@workflow_bp.route("/api/store/export")
def export_store():
    return Response(
        get_store().export_bytes(),
        mimetype="application/octet-stream",
        headers={"Content-Disposition": "attachment; filename=devflow.db"},
    )


@workflow_bp.route("/api/store/import", methods=["POST"])
def import_store():
    changes = get_store().import_bytes(request.get_data())
    return jsonify({"status": "imported", "migrated": changes})


@workflow_bp.route("/api/store/clear", methods=["POST"])
def clear_store():
    get_store().clear_all()
    return jsonify({"status": "cleared"})


@workflow_bp.route("/api/store/location", methods=["POST"])
def set_store_location():
    path = _json_body().get("path")
    if not path:
        return jsonify({"error": "path required"}), 400
    return jsonify({"location": get_store().set_location(path)})


@workflow_bp.route("/api/store/location", methods=["DELETE"])
def clear_store_location():
    get_store().clear_location()
    return jsonify({"status": "cleared"})
