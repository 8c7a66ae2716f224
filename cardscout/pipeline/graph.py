"""Build and compile the LangGraph single-card extraction StateGraph.

The graph topology is:

    START → fetch_main ─┬─ pdf ─→ process_pdf ───┐
                        ├─ web ─→ process_links ─┴→ ai_process → validate ─┬─ complete ──→ persist → END
                        │                                                   └─ incomplete → report_incomplete → END
                        └─ error (from any node) ────────────────────────→ persist_error → END

All nodes are created as closures via the ``make_*`` factories in
``cardscout.pipeline.nodes``, so every node shares the same model, fetcher
and rate limiter without them appearing in the state bag.
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from cardscout.pipeline.nodes import (
    PipelineDeps,
    make_ai_process,
    make_fetch_main,
    make_persist,
    make_persist_error,
    make_process_links,
    make_process_pdf,
    make_report_incomplete,
    make_validate,
)
from cardscout.pipeline.state import CrawlState


def _failed(state: CrawlState) -> bool:
    return state.get("status") == "error"


def _route_fetch(state: CrawlState) -> str:
    if _failed(state):
        return "persist_error"
    return "process_pdf" if state.get("content_type") == "pdf" else "process_links"


def _route_validate(state: CrawlState) -> str:
    if _failed(state):
        return "persist_error"
    return "persist" if state.get("complete") else "report_incomplete"


def _next_or_error(target: str):
    """Route to *target*, or to ``persist_error`` if the node failed."""

    def route(state: CrawlState) -> str:
        return "persist_error" if _failed(state) else target

    return route


def build_graph(deps: PipelineDeps):
    """Compile and return the extraction ``StateGraph``.

    Args:
        deps: Collaborators captured by every node closure.

    Returns:
        A compiled LangGraph graph.  No checkpointer is attached: each run is
        independent and its state is discarded once the result is returned.
    """
    graph = StateGraph(CrawlState)

    # ------------------------------------------------------------------
    # Register nodes (each is a closure over *deps*)
    # ------------------------------------------------------------------
    graph.add_node("fetch_main", make_fetch_main(deps))
    graph.add_node("process_pdf", make_process_pdf(deps))
    graph.add_node("process_links", make_process_links(deps))
    graph.add_node("ai_process", make_ai_process(deps))
    graph.add_node("validate", make_validate(deps))
    graph.add_node("persist", make_persist(deps))
    graph.add_node("report_incomplete", make_report_incomplete(deps))
    graph.add_node("persist_error", make_persist_error(deps))

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------
    graph.add_edge(START, "fetch_main")
    graph.add_conditional_edges(
        "fetch_main", _route_fetch, ["process_pdf", "process_links", "persist_error"]
    )
    graph.add_conditional_edges(
        "process_pdf", _next_or_error("ai_process"), ["ai_process", "persist_error"]
    )
    graph.add_conditional_edges(
        "process_links", _next_or_error("ai_process"), ["ai_process", "persist_error"]
    )
    graph.add_conditional_edges(
        "ai_process", _next_or_error("validate"), ["validate", "persist_error"]
    )
    graph.add_conditional_edges(
        "validate", _route_validate, ["persist", "report_incomplete", "persist_error"]
    )
    graph.add_conditional_edges("persist", _next_or_error(END), [END, "persist_error"])
    graph.add_edge("report_incomplete", END)
    graph.add_edge("persist_error", END)

    return graph.compile()
