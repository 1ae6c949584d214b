"""
Configuration and shared constants for the development workflow tracker.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env - check local first, then user config
load_dotenv()
_user_config = Path.home() / ".devflow" / "config.env"
if _user_config.exists():
    load_dotenv(_user_config)


# Paths
PACKAGE_DIR = Path(__file__).parent
FLOWS_PATH = Path(os.environ.get("DEVFLOW_FLOWS_PATH", PACKAGE_DIR / "workflow" / "data" / "situation_flows.yaml"))
CACHE_PATH = Path(os.environ.get("DEVFLOW_CACHE_PATH", Path.home() / ".devflow" / "cache.db"))

# Byte-store server (remote persistence target)
SERVER_HOST = os.environ.get("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.environ.get("SERVER_PORT", "3001"))
BYTESTORE_URL = os.environ.get("DEVFLOW_SERVER_URL", f"http://localhost:{SERVER_PORT}")
TRANSPORT_TIMEOUT = float(os.environ.get("DEVFLOW_TRANSPORT_TIMEOUT", "5"))

# Workflow API / web
WEB_PORT = int(os.environ.get("DEVFLOW_WEB_PORT", "5001"))


# === Workflow constants ===

# Full situation catalog, in workflow order. Context aggregation walks it in this order.
WORKFLOW_SITUATIONS = [
    "Dumping",
    "WhatToDo",
    "DefiningIntent",
    "FailingIntent",
    "GatheringFacts",
    "SelectingProblem",
    "ListingActions",
    "ExploringSolution",
    "DefiningAcceptance",
    "CheckingFeasibility",
    "Designing",
    "BreakingTasks",
    "Implementing",
    "Verifying",
    "Verified",
    "Releasing",
    "CollectingFeedback",
    "Learning",
    "Ending",
    "Unconscious",
]

# Situations probed to decide whether the active cycle has data of its own yet.
PROBE_SITUATIONS = [
    "Dumping",
    "DefiningIntent",
    "SelectingProblem",
    "DefiningAcceptance",
    "Designing",
]

INTENT_SITUATION = "DefiningIntent"
PROBLEM_SITUATION = "SelectingProblem"
ACCEPTANCE_SITUATION = "DefiningAcceptance"
INTENT_MARKER = "intent-"
PROBLEM_MARKER = "problem-"

# Consecutive Verifying -> Implementing loop guard
GUARDED_FROM = "Verifying"
GUARDED_TO = "Implementing"
TRANSITION_LIMIT = 5

# Questions with hard-coded navigation semantics
RETURN_TO_IMPLEMENTATION_QUESTION = "verification-go-to-implementation"
LIMIT_REACHED_QUESTION = "verification-limit-reached"
CYCLE_COMPLETE_QUESTION = "cycle-complete"
CYCLE_COMPLETE_NEXT_SITUATION = "CollectingFeedback"

# Situations with cycle side effects on entry
CYCLE_START_SITUATION = "Dumping"
UNCONSCIOUS_SITUATION = "Unconscious"

# Canonical multiple-choice options that jump straight to a situation
OPTION_SITUATIONS = {
    "New problem": "SelectingProblem",
    "Start new cycle": "Dumping",
    "Deepen same problem": "DefiningAcceptance",
    "Adjust intent": "DefiningIntent",
    "Done": "Ending",
    "feasible": "Designing",
    "too hard": "SelectingProblem",
    "problem too big": "SelectingProblem",
}

BOOLEAN_VALUES = ("true", "false")
