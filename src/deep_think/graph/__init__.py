"""LangGraph-native refinement loop.

Public API
----------
build_refinement_graph
    Build and compile the Init-Ask-Plan-Explore-Verify-Correct-Summarize graph.
RefinementState
    The TypedDict state flowing through the graph.
make_initial_state
    Input dict for a fresh run.

Node factories (for advanced customisation):
    make_init_node, make_ask_questions_node, make_plan_node, make_explore_node,
    make_verify_node, make_record_node, make_correct_node, make_summarize_node

Edge factories:
    make_after_init, make_after_questions, make_after_record, make_after_correct
"""

from deep_think.graph.edges import (
    make_after_correct,
    make_after_init,
    make_after_questions,
    make_after_record,
)
from deep_think.graph.graph import build_refinement_graph, recursion_limit_for
from deep_think.graph.nodes import (
    make_ask_questions_node,
    make_correct_node,
    make_explore_node,
    make_init_node,
    make_plan_node,
    make_record_node,
    make_summarize_node,
    make_verify_node,
)
from deep_think.graph.state import RefinementState, make_initial_state

__all__ = [
    "build_refinement_graph",
    "recursion_limit_for",
    "RefinementState",
    "make_initial_state",
    # Nodes
    "make_init_node",
    "make_ask_questions_node",
    "make_plan_node",
    "make_explore_node",
    "make_verify_node",
    "make_record_node",
    "make_correct_node",
    "make_summarize_node",
    # Edges
    "make_after_init",
    "make_after_questions",
    "make_after_record",
    "make_after_correct",
]
