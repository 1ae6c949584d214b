"""
Workflow engine - lineage, prompt context and navigation over the answer store.

Usage:
    from repositories import create_store
    from workflow import FlowNavigator, build_prompt_context

    store = create_store()
    nav = FlowNavigator(store)
    nav.enter("Dumping")
    nav.advance("dump-thoughts-text", ["first", "second"])
    context = build_prompt_context(store, "DefiningIntent")
"""

from .catalog import FlowCatalog, load_catalog, parse_catalog
from .context import ContextAggregator, build_prompt_context
from .lineage import LineageResolver
from .navigator import FlowNavigator
from .prompt import fill_template, format_cycle_markdown, format_related_context
from .read_model import StateHistoryEntry, WorkflowReadModel

__all__ = [
    "FlowCatalog",
    "load_catalog",
    "parse_catalog",
    "ContextAggregator",
    "build_prompt_context",
    "LineageResolver",
    "FlowNavigator",
    "fill_template",
    "format_cycle_markdown",
    "format_related_context",
    "StateHistoryEntry",
    "WorkflowReadModel",
]
