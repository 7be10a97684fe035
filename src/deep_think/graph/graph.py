"""Build the refinement StateGraph.

``build_refinement_graph()`` wires the pipeline nodes and conditional edges
into a compiled LangGraph implementing the single-track
Init -> [Ask] -> [Plan] -> Explore -> Verify <-> Correct -> Summarize loop.
"""

from typing import Any

from langgraph.graph import END, START, StateGraph

from deep_think.graph.edges import (
    make_after_correct,
    make_after_init,
    make_after_questions,
    make_after_record,
)
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
from deep_think.graph.state import RefinementState
from deep_think.services.stages import RefinementStages


def recursion_limit_for(max_iterations: int) -> int:
    """Super-step budget: at most three nodes per pass plus the fixed stages."""
    return max_iterations * 3 + 10


def build_refinement_graph(
    stages: RefinementStages,
    max_iterations: int = 30,
    required_successes: int = 3,
    max_errors: int = 10,
    enable_ask_questions: bool = False,
    enable_interactive_mode: bool = False,
    enable_planning: bool = False,
) -> Any:
    """Build and compile the refinement StateGraph.

    Parameters
    ----------
    stages:
        Stage service the nodes delegate their model calls to.
    max_iterations:
        Maximum number of recorded passes.
    required_successes:
        Consecutive passing verifications that end the run in success.
    max_errors:
        Consecutive failing verifications that end the run early.
    enable_ask_questions:
        If True, insert an ``ask_questions`` node after ``init``.
    enable_interactive_mode:
        If True (with questions enabled), the run ends after asking.
    enable_planning:
        If True, insert a ``plan`` node before ``explore``.

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.ainvoke()``.  Pass
        ``recursion_limit_for(max_iterations)`` in the run config.
    """
    graph = StateGraph(RefinementState)

    graph.add_node("init", make_init_node(stages))
    graph.add_node("explore", make_explore_node(stages))
    graph.add_node("verify", make_verify_node(stages))
    graph.add_node("record", make_record_node(stages, required_successes, max_errors))
    graph.add_node("correct", make_correct_node(stages))
    graph.add_node("summarize", make_summarize_node(stages))

    graph.add_edge(START, "init")

    init_targets = {"explore": "explore"}
    if enable_ask_questions:
        graph.add_node(
            "ask_questions",
            make_ask_questions_node(stages, interactive=enable_interactive_mode),
        )
        init_targets["ask_questions"] = "ask_questions"
    if enable_planning:
        graph.add_node("plan", make_plan_node(stages))
        graph.add_edge("plan", "explore")
        init_targets["plan"] = "plan"

    graph.add_conditional_edges(
        "init",
        make_after_init(enable_ask_questions, enable_planning),
        init_targets,
    )

    if enable_ask_questions:
        question_targets = {"explore": "explore", "__end__": END}
        if enable_planning:
            question_targets["plan"] = "plan"
        graph.add_conditional_edges(
            "ask_questions",
            make_after_questions(enable_planning),
            question_targets,
        )

    graph.add_edge("explore", "verify")
    graph.add_edge("verify", "record")
    graph.add_conditional_edges(
        "record",
        make_after_record(max_iterations),
        {"correct": "correct", "verify": "verify", "summarize": "summarize"},
    )
    graph.add_conditional_edges(
        "correct",
        make_after_correct(max_iterations),
        {"verify": "verify", "summarize": "summarize"},
    )
    graph.add_edge("summarize", END)

    return graph.compile()
