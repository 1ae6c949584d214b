"""
Situation flow catalog - the static question graph, loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import yaml

from config import FLOWS_PATH
from models import Question, SituationFlow

_cache: dict[Path, "FlowCatalog"] = {}


class FlowCatalog:
    """Read-only lookup over every situation's question flow."""

    def __init__(self, flows: list[SituationFlow]):
        self._flows = {flow.situation: flow for flow in flows}

    @property
    def situations(self) -> list[str]:
        return list(self._flows)

    def flow(self, situation: str) -> Optional[SituationFlow]:
        return self._flows.get(situation)

    def require(self, situation: str) -> SituationFlow:
        flow = self._flows.get(situation)
        if flow is None:
            raise ValueError(f"Unknown situation: {situation}")
        return flow

    def question(self, situation: str, question_id: str) -> Optional[Question]:
        flow = self._flows.get(situation)
        return flow.get(question_id) if flow else None

    def to_json(self) -> dict:
        """Export for API consumers."""
        return {
            name: flow.model_dump(mode="json", exclude_none=True)
            for name, flow in self._flows.items()
        }


def _validate(flow: SituationFlow) -> None:
    """Every in-flow pointer must name a question of the same flow."""
    ids = {q.id for q in flow.questions}
    if flow.start_question_id not in ids:
        raise ValueError(f"{flow.situation}: start question {flow.start_question_id} not defined")

    for q in flow.questions:
        for target in (q.next_question_id, q.on_yes_next_question_id, q.on_no_next_question_id):
            if target and target not in ids:
                raise ValueError(f"{flow.situation}/{q.id}: unknown next question {target}")


def parse_catalog(data: dict) -> FlowCatalog:
    flows = []
    for entry in data.get("situations", []):
        flow = SituationFlow.model_validate(entry)
        _validate(flow)
        flows.append(flow)
    return FlowCatalog(flows)


def load_catalog(path: Path = None) -> FlowCatalog:
    """Load (and cache) the catalog file."""
    path = Path(path or FLOWS_PATH)

    if path not in _cache:
        if not path.exists():
            raise FileNotFoundError(f"Flow catalog not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        _cache[path] = parse_catalog(data)

    return _cache[path]
